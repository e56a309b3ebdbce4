from __future__ import annotations

from enum import Enum, IntEnum

from pydantic import BaseModel, model_validator

SCRIBE_CHANT_SIGNATURE = "S^C^R^I^B^E^L"
SCRIBE_TRECENTO_SIGNATURE = "S^C^R^I^B^E^S"


class ScribeFormat(str, Enum):
    CHANT = "chant"
    TRECENTO = "trecento"

    @classmethod
    def from_signature(cls, line: str) -> ScribeFormat | None:
        if line == SCRIBE_CHANT_SIGNATURE:
            return cls.CHANT
        if line == SCRIBE_TRECENTO_SIGNATURE:
            return cls.TRECENTO
        return None


class Coloration(IntEnum):
    DEFAULT = 0
    FULL_BLACK = 3
    FULL_RED = 4
    VOID_RED = 5
    VOID_BLACK = 6
    FULL_BLUE = 7

    @classmethod
    def from_char(cls, ch: str) -> Coloration:
        if ch.isdigit() and int(ch) in cls._value2member_map_:
            return cls(int(ch))
        return cls.DEFAULT


class CodeType(str, Enum):
    NOTE = "note"
    REST = "rest"
    LIGATURE = "ligature"
    UNEUME = "uneume"
    INEUME = "ineume"
    MENSURATION = "mensuration"
    CLEF = "clef"
    BARLINE = "barline"
    DOT = "dot"
    ACCIDENTAL = "accidental"
    OTHER = "other"

    @classmethod
    def parse(cls, name: str) -> CodeType:
        try:
            return cls(name.strip().lower())
        except ValueError:
            return cls.OTHER


class VoiceType(IntEnum):
    UNLABELLED = 0
    CANTUS = 1
    TRIPLUM = 2
    CONTRATENOR = 3
    TENOR = 4
    TENOR2 = 5

    @property
    def label(self) -> str:
        return _VOICE_LABELS[self]

    @classmethod
    def from_char(cls, ch: str) -> VoiceType:
        if ch.isdigit() and int(ch) in cls._value2member_map_:
            return cls(int(ch))
        return cls.UNLABELLED


_VOICE_LABELS = {
    VoiceType.UNLABELLED: "unlabelled",
    VoiceType.CANTUS: "cantus",
    VoiceType.TRIPLUM: "triplum",
    VoiceType.CONTRATENOR: "contratenor",
    VoiceType.TENOR: "tenor",
    VoiceType.TENOR2: "tenor 2",
}

CLEF_CODES = ("C", "F", "G")


class StaffState(BaseModel, frozen=True):
    """Coloration, line count and clef in force on a staff (row prefix/suffix)."""

    coloration: Coloration = Coloration.DEFAULT
    staff_lines: int = 4
    clef: str = ""
    clef_line: int = 0

    @classmethod
    def parse(cls, chunk: str) -> StaffState:
        """Read the four positional characters of a row prefix or suffix."""
        chunk = chunk.ljust(4)
        lines = int(chunk[1]) if chunk[1].isdigit() else 4
        line = int(chunk[3]) if chunk[3].isdigit() else 0
        clef = chunk[2] if not chunk[2].isspace() else ""
        return cls(
            coloration=Coloration.from_char(chunk[0]),
            staff_lines=lines,
            clef=clef,
            clef_line=line,
        )


class ScribeEvent(BaseModel):
    code: str
    preceding_gap: bool = True
    local_coloration: Coloration = Coloration.FULL_BLACK
    pitches: list[int] = []

    @property
    def is_clef(self) -> bool:
        return self.code in CLEF_CODES


class ScribeRow(BaseModel):
    prefix: StaffState = StaffState()
    events: list[ScribeEvent] = []
    syllable: str = ""
    comment: str = ""
    is_comment: bool = False
    suffix: StaffState = StaffState()

    @model_validator(mode="after")
    def _comment_rows_are_bare(self) -> ScribeRow:
        if self.is_comment and (self.events or self.syllable):
            raise ValueError("a comment row cannot carry events or a syllable")
        return self

    @property
    def staff_changed(self) -> bool:
        return not self.is_comment and self.prefix != self.suffix

    @property
    def starts_with_clef(self) -> bool:
        return bool(self.events) and self.events[0].is_clef


class ScribePart(BaseModel):
    part_id: int = 0
    # trecento header
    rep_num: str = ""
    title: str = ""
    composer: str = ""
    genre: str = ""
    num_voices: int = 1
    voice_type: VoiceType = VoiceType.UNLABELLED
    # common
    abbrev_ms: str = ""
    folios: str = ""
    # chant header (genre holds the item type)
    feast: str = ""
    office: str = ""
    cao_num: int = 0
    rows: list[ScribeRow] = []
    initial_staff: StaffState = StaffState()


class ScribeDocument(BaseModel):
    format: ScribeFormat
    parts: list[ScribePart] = []

    def _piece_key(self, part: ScribePart) -> str:
        if self.format == ScribeFormat.TRECENTO:
            return part.rep_num
        return part.title

    def pieces(self) -> list[list[ScribePart]]:
        """Group contiguous parts that belong to one piece."""
        groups: list[list[ScribePart]] = []
        previous: str | None = None
        for part in self.parts:
            key = self._piece_key(part)
            if not groups or key != previous:
                groups.append([])
            groups[-1].append(part)
            previous = key
        return groups

    @property
    def piece_count(self) -> int:
        return len(self.pieces())
