"""
Interpretation of Scribe events as notation elements.

Each event is classified by the element type its code carries in the code
table and turned into one or more of the small value types below. A
ligature or neume owns its notes; the builder only has to walk the result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from neoscribe.common.model import CodeType, Coloration, ScribeEvent, ScribeFormat
from neoscribe.scribe.clef import Clef, mei_clef_line
from neoscribe.scribe.codes import CodeTable

STAFF_BOTTOM_LINE = 3


@dataclass(frozen=True)
class NoteElement:
    pname: str
    octave: int
    loc: int
    coloration: Coloration = Coloration.FULL_BLACK
    dur: str | None = None


@dataclass
class UneumeElement:
    name: str
    notes: list[NoteElement] = field(default_factory=list)


@dataclass
class IneumeElement:
    uneumes: list[UneumeElement] = field(default_factory=list)


@dataclass
class LigatureElement:
    name: str
    coloration: Coloration = Coloration.FULL_BLACK
    notes: list[NoteElement] = field(default_factory=list)


@dataclass(frozen=True)
class RestElement:
    type: str | None = None
    ploc: str | None = None
    oloc: int | None = None


@dataclass(frozen=True)
class DotElement:
    ploc: str
    oloc: int
    vo: str | None = None


@dataclass(frozen=True)
class MensurElement:
    sign: str | None = None
    dot: bool = False


@dataclass(frozen=True)
class BarLineElement:
    rend: str | None = None
    barplace: str | None = None


@dataclass(frozen=True)
class ClefElement:
    shape: str
    line: int


@dataclass(frozen=True)
class AccidElement:
    accidental: str
    ploc: str | None = None
    oloc: int | None = None


Notation = Union[
    NoteElement,
    UneumeElement,
    IneumeElement,
    LigatureElement,
    RestElement,
    DotElement,
    MensurElement,
    BarLineElement,
    ClefElement,
    AccidElement,
]

# rest length (second position minus first) -> rest type
REST_TYPES = {
    1: "minima",
    -1: "semibrevis",
    2: "brevis",
    4: "longa imperfecta",
    6: "longa perfecta",
}

MENSURATION_LETTER_SIGNS = {"MO", "MC", "MO.", "MC."}
MENSURATION_DOTTED_SIGNS = {".D.", ".Q.", ".SI.", ".P.", ".N.", ".O.", ".I."}

BARLINE_RENDS = {"QBAR": "quarter", "HBAR": "half", "WBAR": "single", "DBAR": "dbl"}

# chant codes whose extra positions are separate simple neumes
REPEATING_NEUMES = {"B", "V", "L"}


def ineume_part(code: str, index: int) -> tuple[str, int]:
    """Name of the simple neume at ``index`` of a compound neume and how many pitches it takes."""
    if code in {"CM", "CMS", "CMSS", "CM6", "CM7", "CM8"} and index == 0:
        return "virga", 1
    if code in {"PS", "PSS", "PSSS"} and index < 2:
        return "podatus", 2
    if code == "SC'":
        if index < 2:
            return "podatus", 2
        if index == 2:
            return "virga", 1
    if code == "SQ" and index == 1:
        return "quilisma", 1
    if code == "TQ4" and index < 3:
        return "torculus", 3
    return "rhomboid", 1


def ligature_part(code: str, note_index: int) -> str:
    """Note-value code (L, B or S) of the note at ``note_index`` of a ligature."""
    if (
        code in ("LL", "VL")
        or (code in ("PD", "CL") and note_index == 1)
        or (code == "OB" and note_index == 0)
        or (code == "TQ" and note_index == 2)
        or (code in ("PR", "PR'") and note_index in (0, 2))
    ):
        return "L"
    if code in ("COB", "OP"):
        return "S"
    return "B"


def make_note(
    position: int, clef: Clef, coloration: Coloration, dur: str | None = None
) -> NoteElement:
    return NoteElement(
        pname=clef.pitch_name(position),
        octave=clef.octave(position),
        loc=position - STAFF_BOTTOM_LINE,
        coloration=coloration,
        dur=dur,
    )


class EventInterpreter:
    """Turns events into notation elements under the clef in force."""

    def __init__(self, codes: CodeTable, fmt: ScribeFormat) -> None:
        self.codes = codes
        self.fmt = fmt

    def interpret(self, event: ScribeEvent, clef: Clef) -> tuple[list[Notation], Clef]:
        kind = self.codes.code_type(event.code)
        if kind == CodeType.CLEF:
            return self._clef(event, clef)

        handler = {
            CodeType.NOTE: self._notes,
            CodeType.UNEUME: self._uneume,
            CodeType.INEUME: self._ineume,
            CodeType.LIGATURE: self._ligature,
            CodeType.REST: self._rest,
            CodeType.DOT: self._dot,
            CodeType.MENSURATION: self._mensuration,
            CodeType.BARLINE: self._barline,
            CodeType.ACCIDENTAL: self._accidental,
        }.get(kind)
        if handler is None:
            return [], clef
        return handler(event, clef), clef

    def _notes(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        dur = self.codes.name(event.code)
        return [make_note(p, clef, event.local_coloration, dur) for p in event.pitches]

    def _uneume(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        name = self.codes.name(event.code)
        first = UneumeElement(name=name)
        out: list[Notation] = [first]
        split = self.fmt == ScribeFormat.CHANT and event.code in REPEATING_NEUMES
        for i, p in enumerate(event.pitches):
            note = make_note(p, clef, event.local_coloration)
            if i > 0 and split:
                out.append(UneumeElement(name=name, notes=[note]))
            else:
                first.notes.append(note)
        return out

    def _ineume(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        ineume = IneumeElement()
        i = 0
        while i < len(event.pitches):
            name, count = ineume_part(event.code, i)
            group = event.pitches[i : i + count]
            ineume.uneumes.append(
                UneumeElement(
                    name=name,
                    notes=[make_note(p, clef, event.local_coloration) for p in group],
                )
            )
            i += count
        return [ineume]

    def _ligature(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        lig = LigatureElement(
            name=self.codes.name(event.code), coloration=event.local_coloration
        )
        for i, p in enumerate(event.pitches):
            value = ligature_part(event.code, i)
            dur = self.codes.name_or(value, value)
            lig.notes.append(make_note(p, clef, event.local_coloration, dur))
        return [lig]

    def _rest(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        pitches = event.pitches
        if event.code.startswith("R") and len(pitches) >= 2:
            end, start = pitches[0], pitches[1]
            return [
                RestElement(
                    type=REST_TYPES.get(start - end),
                    ploc=clef.pitch_name(start),
                    oloc=clef.octave(start),
                )
            ]
        if pitches:
            return [
                RestElement(
                    type=self.codes.name(event.code),
                    ploc=clef.pitch_name(pitches[0]),
                    oloc=clef.octave(pitches[0]),
                )
            ]
        return [RestElement(type=self.codes.name(event.code))]

    def _dot(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        # second value nudges the dot by tenths of a space: 0 .. +/-4
        if not event.pitches:
            return []
        position = event.pitches[0]
        vo = None
        if len(event.pitches) > 1 and event.pitches[1] != 0:
            vo = f"{event.pitches[1] / 10.0 * 2:.1g}"
        return [DotElement(ploc=clef.pitch_name(position), oloc=clef.octave(position), vo=vo)]

    def _mensuration(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        code = event.code
        if code in MENSURATION_LETTER_SIGNS:
            return [MensurElement(sign=code[1], dot=len(code) == 3 and code.endswith("."))]
        if code in MENSURATION_DOTTED_SIGNS:
            return [MensurElement(sign=code)]
        return [MensurElement()]

    def _barline(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        if event.code == "MBAR":
            return [BarLineElement(barplace="takt")]
        return [BarLineElement(rend=BARLINE_RENDS.get(event.code))]

    def _accidental(self, event: ScribeEvent, clef: Clef) -> list[Notation]:
        name = self.codes.name(event.code)
        if not event.pitches:
            return [AccidElement(accidental=name)]
        p = event.pitches[0]
        return [AccidElement(accidental=name, ploc=clef.pitch_name(p), oloc=clef.octave(p))]

    def _clef(self, event: ScribeEvent, clef: Clef) -> tuple[list[Notation], Clef]:
        line = event.pitches[0] if event.pitches else clef.line
        new_clef = clef.changed(event.code[:1], line)
        return [ClefElement(shape=new_clef.letter, line=mei_clef_line(line))], new_clef
