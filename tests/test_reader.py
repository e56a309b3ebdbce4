import io
import json
import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from neoscribe.common.errors import MissingMetadataError, ScribeFormatError
from neoscribe.common.logging import setup_logging
from neoscribe.common.model import ScribeFormat, VoiceType
from neoscribe.scribe.codes import CodeTable
from neoscribe.scribe.reader import (
    assemble_title,
    lenient_int,
    load_scribe,
    load_scribe_file,
    split_lines,
)
from neoscribe.scribe.row import parse_row

TRECENTO = "S^C^R^I^B^E^S"
CHANT = "S^C^R^I^B^E^L"


def _load(text: str, chant_codes: CodeTable, trecento_codes: CodeTable):
    return load_scribe(io.StringIO(text), chant_codes, trecento_codes)


def test_minimal_trecento_file(
    write_scribe: Callable[..., Path],
    trecento_header: Callable[..., str],
    chant_codes: CodeTable,
    trecento_codes: CodeTable,
) -> None:
    path = write_scribe(
        "ballata.txt",
        [TRECENTO, trecento_header(), "34C5C 534C5", "34C5S 7;Ky34C5"],
    )
    doc = load_scribe_file(path, chant_codes, trecento_codes)

    assert doc.format == ScribeFormat.TRECENTO
    assert len(doc.parts) == 1
    assert doc.piece_count == 1

    part = doc.parts[0]
    assert part.part_id == 1
    assert part.initial_staff.clef == "C"
    assert part.initial_staff.clef_line == 5
    assert part.initial_staff.staff_lines == 4

    note_row = part.rows[-1]
    assert len(note_row.events) == 1
    assert note_row.events[0].code == "S"
    assert note_row.events[0].pitches == [7]
    assert note_row.syllable == "Ky"


def test_trecento_header_fields(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    header = trecento_header(
        rep="R 12/a",
        title="Ecco la primavera",
        composer="Landini",
        genre="ballata",
        voices="2",
        ms="SQ",
        folios="134v-135r",
        voice_type="4",
    )
    doc = _load("\n".join([TRECENTO, header, "34C5C 534C5"]), chant_codes, trecento_codes)
    part = doc.parts[0]
    assert part.rep_num == "R 12/a"
    assert part.title == "Ecco la primavera"
    assert part.composer == "Landini"
    assert part.genre == "ballata"
    assert part.num_voices == 2
    assert part.abbrev_ms == "SQ"
    assert part.folios == "134v-135r"
    assert part.voice_type == VoiceType.TENOR


def test_chant_header_fields(
    chant_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    doc = _load(
        "\n".join([CHANT, chant_header(cao="6017abc"), "34C5C 534C5", "34C5B 7;Ae-34C5"]),
        chant_codes,
        trecento_codes,
    )
    part = doc.parts[0]
    assert doc.format == ScribeFormat.CHANT
    assert part.abbrev_ms == "CA"
    assert part.feast == "Dominica in Adventu"
    assert part.office == "Matins"
    assert part.genre == "Responsory"
    assert part.folios == "3v"
    assert part.cao_num == 6017


def test_bad_signature(chant_codes: CodeTable, trecento_codes: CodeTable) -> None:
    with pytest.raises(ScribeFormatError, match="header not found"):
        _load("NOT A SCRIBE FILE\n>header\n", chant_codes, trecento_codes)


def test_empty_file(chant_codes: CodeTable, trecento_codes: CodeTable) -> None:
    with pytest.raises(ScribeFormatError):
        _load("", chant_codes, trecento_codes)


def test_missing_part_header(chant_codes: CodeTable, trecento_codes: CodeTable) -> None:
    with pytest.raises(MissingMetadataError) as exc:
        _load("\n".join([TRECENTO, "34C5C 534C5"]), chant_codes, trecento_codes)
    assert exc.value.line_no == 2
    assert isinstance(exc.value, ScribeFormatError)


@pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
def test_line_terminators(
    newline: str,
    write_scribe: Callable[..., Path],
    trecento_header: Callable[..., str],
    chant_codes: CodeTable,
    trecento_codes: CodeTable,
) -> None:
    path = write_scribe(
        "piece.txt",
        [TRECENTO, trecento_header(), "34C5C 534C5", "34C5S 7 M 834C5"],
        newline=newline,
    )
    doc = load_scribe_file(path, chant_codes, trecento_codes)
    assert len(doc.parts) == 1
    rows = doc.parts[0].rows
    assert len(rows) == 2
    assert rows[1].events[1].pitches == [8]
    assert rows[1].suffix.clef_line == 5


def test_line_row_overrides_staff_lines(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    doc = _load(
        "\n".join([TRECENTO, trecento_header(), "35C5LINE 535C5", "35C5C 535C5"]),
        chant_codes,
        trecento_codes,
    )
    part = doc.parts[0]
    assert part.initial_staff.staff_lines == 5
    # the LINE row is not a body row
    assert [r.events[0].code for r in part.rows] == ["C"]


def test_comments_and_blank_rows(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    text = "\n".join(
        [
            TRECENTO,
            trecento_header(rep="R1"),
            "*first voice",
            "34C5C 534C5",
            "34C5XYZ34C5",
            "",
            "",
            trecento_header(rep="R1", voice_type="4"),
            "34F7F 734F7",
        ]
    )
    doc = _load(text, chant_codes, trecento_codes)
    assert len(doc.parts) == 2
    first, second = doc.parts
    assert first.rows[0].is_comment
    assert first.rows[0].comment == "first voice"
    # a row with no recognized event is not kept
    assert len(first.rows) == 2
    assert second.part_id == 2
    assert second.initial_staff.clef == "F"
    assert doc.piece_count == 1


def test_trecento_pieces_follow_rep_num(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    text = "\n".join(
        [
            TRECENTO,
            trecento_header(rep="R1"),
            "34C5C 534C5",
            trecento_header(rep="R1", voice_type="4"),
            "34C5C 534C5",
            trecento_header(rep="R2"),
            "34C5C 534C5",
        ]
    )
    doc = _load(text, chant_codes, trecento_codes)
    assert [len(p) for p in doc.pieces()] == [2, 1]
    assert doc.piece_count == 2


def test_chant_pieces_follow_title(
    chant_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    text = "\n".join(
        [
            CHANT,
            chant_header(cao="6017"),
            "34C5C 534C5",
            "34C5B 7;Ec-34C5",
            "34C5B 8;ce.34C5",
            chant_header(cao="6018"),
            "34C5C 534C5",
            "34C5B 7;Ec-34C5",
            "34C5B 8;ce.34C5",
            chant_header(cao="6019"),
            "34C5C 534C5",
            "34C5B 9;Al-34C5",
            "34C5B 8;le-34C5",
            "34C5B 7;lu-34C5",
            "34C5B 6;ia34C5",
        ]
    )
    doc = _load(text, chant_codes, trecento_codes)
    assert [p.title for p in doc.parts] == ["Ecce", "Ecce", "Alleluia"]
    assert doc.piece_count == 2


def test_assemble_title_word_breaks(chant_codes: CodeTable) -> None:
    rows = [
        parse_row(r, chant_codes)
        for r in [
            "34C5C 534C5",
            "34C5B 7;Ad-34C5",
            "34C5B 7;te34C5",
            "34C5B 7;le-34C5",
            "34C5B 7;va-34C5",
            "34C5B 7;vi34C5",
            "34C5B 7;a-34C5",
            "34C5B 7;ni-34C5",
            "34C5B 7;mam34C5",
            "34C5B 7;me-34C5",
            "34C5B 7;am34C5",
        ]
    ]
    assert assemble_title(rows) == "Adte levavi animam"


def test_split_lines() -> None:
    assert split_lines("a\r\nb\rc\nd\n") == ["a", "b", "c", "d"]
    assert split_lines("a\n\nb") == ["a", "", "b"]
    assert split_lines("") == []


def test_lenient_int() -> None:
    assert lenient_int("  42x") == 42
    assert lenient_int("abc") == 0
    assert lenient_int("") == 0


def test_title_keeps_syllable_of_clef_change_row(chant_codes: CodeTable) -> None:
    rows = [
        parse_row(r, chant_codes)
        for r in [
            "34C5C 534C5",
            "34C5B 7;Glo-34C5",
            "34C5F 7 B 8;ri-34F7",
            "34F7B 7;a34F7",
        ]
    ]
    assert rows[2].starts_with_clef
    assert assemble_title(rows) == "Gloria"


def test_blank_lines_between_parts_are_skipped(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    text = "\n".join(
        [
            TRECENTO,
            trecento_header(rep="R1"),
            "34C5C 534C5",
            "",
            "",
            "   ",
            trecento_header(rep="R2"),
            "34C5S 734C5",
            "",
            "",
        ]
    )
    doc = _load(text, chant_codes, trecento_codes)
    assert [p.rep_num for p in doc.parts] == ["R1", "R2"]
    assert [len(p.rows) for p in doc.parts] == [1, 1]
    assert doc.piece_count == 2


def test_body_after_blank_lines_still_needs_a_header(
    trecento_header: Callable[..., str], chant_codes: CodeTable, trecento_codes: CodeTable
) -> None:
    text = "\n".join([TRECENTO, trecento_header(), "34C5C 534C5", "", "", "34C5S 734C5"])
    with pytest.raises(MissingMetadataError) as exc:
        _load(text, chant_codes, trecento_codes)
    assert exc.value.line_no == 6


def test_load_events_carry_file_context(
    caplog: pytest.LogCaptureFixture,
    write_scribe: Callable[..., Path],
    trecento_header: Callable[..., str],
    chant_codes: CodeTable,
    trecento_codes: CodeTable,
) -> None:
    setup_logging()
    caplog.set_level(logging.INFO)
    path = write_scribe("ballata.txt", [TRECENTO, trecento_header(), "34C5C 534C5"])
    load_scribe_file(path, chant_codes, trecento_codes)

    events = []
    for record in caplog.records:
        try:
            events.append(json.loads(record.getMessage()))
        except ValueError:
            continue
    loaded = [e for e in events if e.get("event") == "scribe_part_loaded"]
    assert loaded
    assert loaded[-1]["file"] == str(path)
    assert loaded[-1]["format"] == "trecento"
    assert loaded[-1]["part"] == 1
