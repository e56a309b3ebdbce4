from __future__ import annotations

import csv
from pathlib import Path

from neoscribe.common.errors import TableLoadError, TableLookupError
from neoscribe.common.logging import log


class SourceKey:
    """Manuscript siglum -> descriptive source name and RISM abbreviation."""

    def __init__(self, names: dict[str, str], rism: dict[str, str], source: str = "<memory>") -> None:
        self._names = names
        self._rism = rism
        self.source = source

    @classmethod
    def load(cls, tab_path: Path, encoding: str = "utf-8") -> SourceKey:
        try:
            with tab_path.open("r", encoding=encoding, newline="") as fh:
                rows = list(csv.reader(fh, delimiter="\t", quoting=csv.QUOTE_NONE))
        except (OSError, UnicodeDecodeError) as err:
            raise TableLoadError(f"Could not open Source Codes file: {tab_path}") from err

        names: dict[str, str] = {}
        rism: dict[str, str] = {}
        for row in rows[1:]:
            if not row or not row[0].strip():
                continue
            siglum = row[0]
            name = row[1].strip('"') if len(row) > 1 else ""
            abbrev = row[2] if len(row) > 2 else ""
            names.setdefault(siglum, name)
            rism.setdefault(siglum, abbrev)

        if not names:
            raise TableLoadError(f"Error reading Sources codes file: {tab_path}")
        log.info("source_key_loaded", file=str(tab_path), sigla=len(names))
        return cls(names, rism, str(tab_path))

    def __contains__(self, siglum: object) -> bool:
        return siglum in self._names

    def __len__(self) -> int:
        return len(self._names)

    def contains(self, siglum: str) -> bool:
        return siglum in self._names

    def source_name(self, siglum: str) -> str:
        try:
            return self._names[siglum]
        except KeyError:
            raise TableLookupError(self.source, siglum) from None

    def rism_name(self, siglum: str) -> str:
        try:
            return self._rism[siglum]
        except KeyError:
            raise TableLookupError(self.source, siglum) from None
