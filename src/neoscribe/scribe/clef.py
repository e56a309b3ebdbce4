"""
Clef-relative pitch arithmetic for Scribe staff positions.

Staff positions count from 1 below a four-line staff: odd numbers are lines
(3, 5, 7, 9), even numbers are spaces. A clef sits on one of those positions
and fixes where 'a' and middle c fall.
"""

from __future__ import annotations

from dataclasses import dataclass

# offset of the nearest 'a' below/at the clef position, per clef letter
_A_OFFSET = {"C": -2, "F": 2, "G": -6}
# offset of middle c (octave 4) from the clef position
_C_OFFSET = {"C": 0, "F": 4, "G": -4}


def pitch_name(position: int, clef: str, clef_line: int) -> str:
    a_pos = clef_line + _A_OFFSET.get(clef, -clef_line)
    displacement = (position % 7 - a_pos) % 7
    return chr(ord("a") + displacement)


def octave(position: int, clef: str, clef_line: int) -> int:
    """Scientific octave number (middle c = 4, F clef note = 3)."""
    c_pos = clef_line + _C_OFFSET.get(clef, -clef_line)
    diff = position - c_pos
    # one octave down for anything below c, then whole octaves (truncated) further down
    return 4 - (1 if diff < 0 else 0) + int(diff / 7)


def mei_clef_line(clef_line: int) -> int:
    """Scribe line position (3, 5, 7, 9) -> MEI staff line (1..4)."""
    return 1 + int((clef_line - 3) / 2)


@dataclass(frozen=True)
class Clef:
    letter: str = ""
    line: int = 0

    def pitch_name(self, position: int) -> str:
        return pitch_name(position, self.letter, self.line)

    def octave(self, position: int) -> int:
        return octave(position, self.letter, self.line)

    def changed(self, letter: str, line: int) -> Clef:
        return Clef(letter=letter, line=line)
