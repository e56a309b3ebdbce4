from __future__ import annotations

import os
from pathlib import Path

from lxml import etree

from neoscribe.common.logging import log
from neoscribe.common.model import ScribeDocument, ScribeFormat, ScribePart
from neoscribe.mei.builder import MeiBuilder

XML_SUFFIX = ".xml"


def _safe_stem(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_").strip()


def piece_file_stem(fmt: ScribeFormat, first: ScribePart) -> str:
    if fmt == ScribeFormat.TRECENTO:
        return _safe_stem(first.rep_num)
    return _safe_stem(f"{first.abbrev_ms}{first.part_id:04d} ({first.cao_num})")


def _disambiguate(stem: str, taken: set[str]) -> str:
    if stem not in taken:
        return stem
    candidate = f"{stem} copy"
    n = 2
    while candidate in taken:
        candidate = f"{stem} copy {n}"
        n += 1
    return candidate


def plan_outputs(
    doc: ScribeDocument, input_path: Path, out_dir: Path
) -> list[tuple[Path, list[ScribePart], bool]]:
    """
    Decide the output files for a document: (path, parts, segmented).

    A single piece goes to ``<input name>.xml``; several pieces get one file
    each, named after the repertory number (trecento) or manuscript, part
    number and catalog number (chant).
    """
    pieces = doc.pieces()
    if not pieces:
        return []
    if len(pieces) == 1:
        return [(out_dir / (input_path.name + XML_SUFFIX), doc.parts, False)]

    planned: list[tuple[Path, list[ScribePart], bool]] = []
    taken: set[str] = set()
    for idx, piece in enumerate(pieces, start=1):
        stem = piece_file_stem(doc.format, piece[0]) or f"piece{idx:04d}"
        stem = _disambiguate(stem, taken)
        taken.add(stem)
        planned.append((out_dir / (stem + XML_SUFFIX), piece, True))
    return planned


def serialize(tree: etree._ElementTree) -> bytes:
    return etree.tostring(tree, pretty_print=True, xml_declaration=True, encoding="UTF-8")


def write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".part")
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_document(
    doc: ScribeDocument, builder: MeiBuilder, input_path: Path, out_dir: Path
) -> list[Path]:
    """Build every output tree first, then write them; returns the written paths."""
    rendered: list[tuple[Path, bytes]] = []
    for path, parts, segmented in plan_outputs(doc, input_path, out_dir):
        tree = builder.build(parts, with_alt_id=segmented)
        rendered.append((path, serialize(tree)))

    written: list[Path] = []
    for path, data in rendered:
        write_atomic(path, data)
        log.info("mei_saved", file=str(path), bytes=len(data))
        written.append(path)
    return written
