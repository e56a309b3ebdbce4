"""
Parser for a single line of Scribe data.

A music line looks like::

    PPPP<events and sigils>[;syllable]SSSS

where PPPP/SSSS are the four positional staff characters (coloration, line
count, clef letter, clef line). The suffix always occupies the last four
characters of the line. A line starting with '*' is a comment.
"""

from __future__ import annotations

from neoscribe.common.logging import log
from neoscribe.common.model import Coloration, ScribeEvent, ScribeRow, StaffState
from neoscribe.scribe.codes import CodeTable

STAFF_FIELD_WIDTH = 4
COMMENT_MARK = "*"
SYLLABLE_MARK = ";"


def _is_digit(ch: str) -> bool:
    return ch != "" and "0" <= ch <= "9"


def _is_token_char(ch: str) -> bool:
    return ch != "" and ("A" <= ch <= "Z" or ch in ".'#")


def _at(text: str, i: int, end: int) -> str:
    return text[i] if i < end else ""


def read_pitch_numbers(text: str, pos: int, end: int) -> tuple[list[int], int]:
    """
    Read the staff positions following a token, starting at text[pos].

    A list starts with a digit, a '-' before a digit, or a single blank before
    a digit. Numbers are separated by one blank (two are tolerated). Nothing
    at or past ``end`` is read. Returns the numbers and the position after them.
    """
    c = _at(text, pos, end)
    nxt = _at(text, pos + 1, end)
    if not (_is_digit(c) or ((c == "-" or c.isspace()) and _is_digit(nxt))):
        return [], pos

    start = pos
    pos += 1
    while _is_digit(_at(text, pos, end)):
        pos += 1
    numbers = [int(text[start:pos].strip())]

    if _at(text, pos, end).isspace():
        if _at(text, pos + 1, end).isspace():
            pos += 1
        more, pos = read_pitch_numbers(text, pos + 1, end)
        numbers.extend(more)
    return numbers, pos


def parse_row(raw: str, codes: CodeTable) -> ScribeRow:
    """Parse one line (without its line terminator) into a ScribeRow."""
    if raw.startswith(COMMENT_MARK):
        return ScribeRow(is_comment=True, comment=raw[1:])
    if len(raw) < STAFF_FIELD_WIDTH:
        return ScribeRow()

    end = len(raw) - STAFF_FIELD_WIDTH
    prefix = StaffState.parse(raw[:STAFF_FIELD_WIDTH])

    events: list[ScribeEvent] = []
    syllable = ""
    gap = True
    colour = Coloration.FULL_BLACK
    pos = STAFF_FIELD_WIDTH

    while pos < end:
        start = pos
        c = raw[pos]

        # gap and coloration sigils
        if c == "!":
            gap = True
            pos += 1
            if _at(raw, pos, end) == "!":
                pos += 1
            if _at(raw, pos, end).isspace():
                pos += 1
        elif c == "@":
            gap = False
            pos += 1
            if _at(raw, pos, end).isspace():
                pos += 1
        elif c in ("+", "-"):
            pos += 1
            other = "-" if c == "+" else "+"
            if _at(raw, pos, end) == other:
                pos += 1
                colour = Coloration.VOID_RED
            else:
                colour = Coloration.FULL_RED if c == "+" else Coloration.VOID_BLACK
        elif c == "=":
            colour = Coloration.FULL_BLACK
            pos += 1
            if _at(raw, pos, end).isspace():
                pos += 1
        elif c == SYLLABLE_MARK:
            syllable = raw[pos + 1 : end]
            pos = end
            break
        elif c.isspace():
            pos += 1

        token_end = pos
        while _is_token_char(_at(raw, token_end, end)):
            token_end += 1
        token = raw[pos:token_end]
        pos = token_end

        if token:
            pitches, pos = read_pitch_numbers(raw, pos, end)
            if token in codes:
                events.append(
                    ScribeEvent(
                        code=token,
                        preceding_gap=gap,
                        local_coloration=colour,
                        pitches=pitches,
                    )
                )
            else:
                log.debug("scribe_token_dropped", token=token, pitches=pitches)
            gap = True

        if pos == start:
            # neither sigil, separator nor token character
            pos += 1

    suffix = StaffState.parse(raw[end : end + STAFF_FIELD_WIDTH])
    return ScribeRow(prefix=prefix, events=events, syllable=syllable, suffix=suffix)
