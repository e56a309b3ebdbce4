from __future__ import annotations


class ScribeError(Exception):
    """Base class for everything raised while reading or converting Scribe data."""


class ScribeFormatError(ScribeError):
    """The file does not start with a recognized Scribe signature line."""


class MissingMetadataError(ScribeFormatError):
    """A part header line (starting with '>') was expected but not found."""

    def __init__(self, line_no: int, line: str) -> None:
        super().__init__(f"metadata not present (line {line_no}): {line[:40]!r}")
        self.line_no = line_no
        self.line = line


class TableLoadError(ScribeError):
    """A lookup table file is missing, unreadable or empty."""


class TableLookupError(ScribeError, KeyError):
    """A key was queried that the table does not contain; check membership first."""

    def __init__(self, table: str, key: str) -> None:
        super().__init__(f"{table}: no entry for {key!r}")
        self.table = table
        self.key = key

    def __str__(self) -> str:
        return str(self.args[0])
