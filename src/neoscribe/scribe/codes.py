from __future__ import annotations

import csv
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from neoscribe.common.errors import TableLoadError, TableLookupError
from neoscribe.common.logging import log
from neoscribe.common.model import CodeType

# Column layout of the neumcode tables (header row is skipped):
# ascii, character, arguments, code, pitchcode, scoretype, scorecode, name,
# lilycode, numspace, whitecode, blackcode, cursneume, hilneume, duration, meitype
COL_CODE = 3
COL_PITCHED = 4
COL_NAME = 7
COL_TYPE = 15


@dataclass(frozen=True)
class CodeEntry:
    code: str
    name: str
    pitched: bool
    type: CodeType


class CodeTable:
    """Scribe code -> element name, pitch flag and element type."""

    def __init__(self, entries: dict[str, CodeEntry], source: str = "<memory>") -> None:
        self._entries = entries
        self.source = source

    @classmethod
    def from_entries(cls, entries: Iterable[CodeEntry], source: str = "<memory>") -> CodeTable:
        table: dict[str, CodeEntry] = {}
        for e in entries:
            table.setdefault(e.code, e)
        return cls(table, source)

    @classmethod
    def load(cls, csv_path: Path, encoding: str = "utf-8") -> CodeTable:
        try:
            with csv_path.open("r", encoding=encoding, newline="") as fh:
                rows = list(csv.reader(fh))
        except (OSError, UnicodeDecodeError) as err:
            raise TableLoadError(f"Could not open code table: {csv_path}") from err

        entries: dict[str, CodeEntry] = {}
        for line_no, row in enumerate(rows[1:], start=2):
            if not row or not any(cell.strip() for cell in row):
                continue
            if len(row) <= COL_NAME:
                log.warning("code_row_short", file=str(csv_path), line=line_no, cells=len(row))
                continue
            code = row[COL_CODE]
            mei_type = row[COL_TYPE].strip() if len(row) > COL_TYPE else ""
            if not mei_type:
                log.warning("code_type_empty", file=str(csv_path), line=line_no, code=code)
            entries.setdefault(
                code,
                CodeEntry(
                    code=code,
                    name=row[COL_NAME],
                    pitched=row[COL_PITCHED].strip() == "TRUE",
                    type=CodeType.parse(mei_type),
                ),
            )

        if not entries:
            raise TableLoadError(f"No codes read from {csv_path}")
        log.info("code_table_loaded", file=str(csv_path), codes=len(entries))
        return cls(entries, str(csv_path))

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def contains(self, code: str) -> bool:
        return code in self._entries

    def _entry(self, code: str) -> CodeEntry:
        try:
            return self._entries[code]
        except KeyError:
            raise TableLookupError(self.source, code) from None

    def name(self, code: str) -> str:
        return self._entry(code).name

    def is_pitched(self, code: str) -> bool:
        return self._entry(code).pitched

    def code_type(self, code: str) -> CodeType:
        entry = self._entries.get(code)
        return entry.type if entry else CodeType.OTHER

    def is_ligature(self, code: str) -> bool:
        return self.code_type(code) == CodeType.LIGATURE

    def name_or(self, code: str, default: str) -> str:
        entry = self._entries.get(code)
        return entry.name if entry else default
