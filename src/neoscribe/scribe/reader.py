from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any, TextIO

from neoscribe.common.errors import MissingMetadataError, ScribeFormatError
from neoscribe.common.logging import log
from neoscribe.common.model import (
    ScribeDocument,
    ScribeFormat,
    ScribePart,
    ScribeRow,
    StaffState,
    VoiceType,
)
from neoscribe.scribe.codes import CodeTable
from neoscribe.scribe.row import parse_row

PART_HEADER_MARK = ">"
LINE_COUNT_MARK = "LINE"
TITLE_LENGTH = 16

# fixed field widths of the part header lines
REP_NUM_LENGTH = 10
TITLE_FIELD_LENGTH = 40
COMPOSER_LENGTH = 20
GENRE_LENGTH = 10
VOICE_COUNT_LENGTH = 1
MS_ABBREV_LENGTH = 10
FOLIO_LENGTH = 20
OFFICE_LENGTH = 20
CHANT_TYPE_LENGTH = 20
CAO_NUM_LENGTH = 8

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def split_lines(text: str) -> list[str]:
    """Split on LF, CR or CRLF; a terminator at end of text opens no extra line."""
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def lenient_int(text: str) -> int:
    """Leading integer of ``text``, 0 when there is none."""
    m = _LEADING_INT.match(text)
    return int(m.group(1)) if m else 0


class _FieldCursor:
    """Reads consecutive fixed-width fields from a part header line."""

    def __init__(self, line: str) -> None:
        self.line = line
        self.pos = len(PART_HEADER_MARK)

    def take(self, width: int) -> str:
        field = self.line[self.pos : self.pos + width]
        self.pos += width
        return field.rstrip()


def _parse_trecento_header(line: str, part: ScribePart) -> None:
    f = _FieldCursor(line)
    part.rep_num = f.take(REP_NUM_LENGTH)
    part.title = f.take(TITLE_FIELD_LENGTH)
    part.composer = f.take(COMPOSER_LENGTH)
    part.genre = f.take(GENRE_LENGTH)
    part.num_voices = lenient_int(f.take(VOICE_COUNT_LENGTH))
    part.abbrev_ms = f.take(MS_ABBREV_LENGTH)
    part.folios = f.take(FOLIO_LENGTH)
    part.voice_type = VoiceType.from_char(f.take(1)[:1])


def _parse_chant_header(line: str, part: ScribePart) -> None:
    f = _FieldCursor(line)
    part.abbrev_ms = f.take(MS_ABBREV_LENGTH)
    part.feast = f.take(TITLE_FIELD_LENGTH)
    part.office = f.take(OFFICE_LENGTH)
    part.genre = f.take(CHANT_TYPE_LENGTH)
    part.folios = f.take(FOLIO_LENGTH)
    part.cao_num = lenient_int(f.take(CAO_NUM_LENGTH))


def find_initial_clef(rows: list[ScribeRow], staff: StaffState) -> StaffState:
    """Take the clef of the first row that opens with a clef event."""
    for row in rows:
        if row.is_comment or not row.starts_with_clef:
            continue
        event = row.events[0]
        if not event.pitches:
            continue
        return staff.model_copy(update={"clef": event.code, "clef_line": event.pitches[0]})
    return staff


def assemble_title(rows: list[ScribeRow], limit: int = TITLE_LENGTH) -> str:
    """
    Build a chant title from the opening syllables of a part.

    Hyphen-final syllables are joined to the following syllable, a syllable
    ending in '.' closes the title, and accumulation stops once ``limit``
    characters have been collected.
    """
    syllables = [r.syllable for r in rows if not r.is_comment and r.syllable]
    title = ""
    i = 0
    while i < len(syllables) and len(title) < limit:
        title += syllables[i]
        while title.endswith("-") and i + 1 < len(syllables):
            i += 1
            title = title[:-1] + syllables[i]
        i += 1
        if title.endswith("."):
            title = title[:-1]
            break
        title += " "
    return title.rstrip(" \t.-")


def _iter_nonblank_lines(lines: list[str], start: int) -> Iterator[int]:
    for i in range(start, len(lines)):
        if lines[i].strip():
            yield i


class ScribeReader:
    """
    Loads a whole Scribe file: signature line, then for every part a '>'
    header, an optional LINE row and the body rows up to the next header.
    """

    def __init__(self, chant_codes: CodeTable, trecento_codes: CodeTable) -> None:
        self.chant_codes = chant_codes
        self.trecento_codes = trecento_codes

    def load(self, stream: TextIO, name: str = "<stream>") -> ScribeDocument:
        lines = split_lines(stream.read())
        if not lines:
            raise ScribeFormatError(f"bad file: header not found ({name} is empty)")

        fmt = ScribeFormat.from_signature(lines[0])
        if fmt is None:
            raise ScribeFormatError(f"bad file: header not found in {name}: {lines[0][:20]!r}")
        codes = self.chant_codes if fmt == ScribeFormat.CHANT else self.trecento_codes
        flog = log.bind(file=name, format=fmt.value)
        flog.info("scribe_load_start", lines=len(lines))

        doc = ScribeDocument(format=fmt)
        i = 1
        while True:
            i = next(_iter_nonblank_lines(lines, i), len(lines))
            if i >= len(lines):
                break
            part, i = self._load_part(lines, i, fmt, codes, flog)
            part.part_id = len(doc.parts) + 1
            doc.parts.append(part)
            flog.info(
                "scribe_part_loaded",
                part=part.part_id,
                title=part.title,
                rows=len(part.rows),
                clef=part.initial_staff.clef,
            )

        flog.info("scribe_load_done", parts=len(doc.parts), pieces=doc.piece_count)
        return doc

    def _load_part(
        self,
        lines: list[str],
        i: int,
        fmt: ScribeFormat,
        codes: CodeTable,
        flog: Any = log,
    ) -> tuple[ScribePart, int]:
        header = lines[i]
        if not header.startswith(PART_HEADER_MARK):
            raise MissingMetadataError(i + 1, header)

        part = ScribePart()
        if fmt == ScribeFormat.TRECENTO:
            _parse_trecento_header(header, part)
        else:
            _parse_chant_header(header, part)
        i += 1

        staff = StaffState()
        if i < len(lines) and LINE_COUNT_MARK in lines[i]:
            line_row = parse_row(lines[i], codes)
            if line_row.events and line_row.events[0].pitches:
                staff = staff.model_copy(update={"staff_lines": line_row.events[0].pitches[0]})
            else:
                flog.warning("scribe_line_count_unreadable", line=i + 1, text=lines[i])
            i += 1

        while i < len(lines) and lines[i] and not lines[i].startswith(PART_HEADER_MARK):
            row = parse_row(lines[i], codes)
            if row.is_comment or row.events:
                part.rows.append(row)
            i += 1

        part.initial_staff = find_initial_clef(part.rows, staff)
        if fmt == ScribeFormat.CHANT:
            part.title = assemble_title(part.rows)
        return part, i


def load_scribe(stream: TextIO, chant_codes: CodeTable, trecento_codes: CodeTable) -> ScribeDocument:
    return ScribeReader(chant_codes, trecento_codes).load(stream)


def load_scribe_file(
    path: Path,
    chant_codes: CodeTable,
    trecento_codes: CodeTable,
    encoding: str = "latin-1",
) -> ScribeDocument:
    # newline="" keeps CR/CRLF intact for split_lines
    with path.open("r", encoding=encoding, newline="") as fh:
        return ScribeReader(chant_codes, trecento_codes).load(fh, name=str(path))
