from __future__ import annotations

from dataclasses import dataclass

from neoscribe.common.config import AppConfig
from neoscribe.common.model import ScribeFormat
from neoscribe.scribe.codes import CodeTable
from neoscribe.scribe.sourcekey import SourceKey


@dataclass(frozen=True)
class ScribeTables:
    """Lookup tables loaded once per process and shared by every conversion."""

    chant_codes: CodeTable
    trecento_codes: CodeTable
    source_key: SourceKey

    def codes_for(self, fmt: ScribeFormat) -> CodeTable:
        return self.chant_codes if fmt == ScribeFormat.CHANT else self.trecento_codes


def load_tables(cfg: AppConfig) -> ScribeTables:
    return ScribeTables(
        chant_codes=CodeTable.load(cfg.table_path(cfg.chant_codes)),
        trecento_codes=CodeTable.load(cfg.table_path(cfg.trecento_codes)),
        source_key=SourceKey.load(cfg.table_path(cfg.source_key)),
    )
