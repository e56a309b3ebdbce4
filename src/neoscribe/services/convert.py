from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from neoscribe.common.config import AppConfig
from neoscribe.common.errors import ScribeError
from neoscribe.common.logging import log
from neoscribe.mei.builder import MeiBuilder
from neoscribe.mei.writer import write_document
from neoscribe.scribe.reader import load_scribe_file
from neoscribe.scribe.tables import ScribeTables


def convert_file(
    path: Path, tables: ScribeTables, cfg: AppConfig
) -> tuple[int, list[Path]]:
    """Load one Scribe file and write its MEI output(s). Returns (pieces, written files)."""
    doc = load_scribe_file(path, tables.chant_codes, tables.trecento_codes, encoding=cfg.encoding)
    builder = MeiBuilder(
        codes=tables.codes_for(doc.format),
        source_key=tables.source_key,
        fmt=doc.format,
        encoder=cfg.encoder,
    )
    out_dir = cfg.out_dir if cfg.out_dir is not None else path.parent
    written = write_document(doc, builder, path, out_dir)
    return doc.piece_count, written


def convert_files(
    paths: Iterable[Path], tables: ScribeTables, cfg: AppConfig
) -> dict[str, Any]:
    """
    Convert each file independently; a failing file is logged and counted,
    the remaining files are still processed.
    """
    converted = failed = pieces = 0
    outputs: list[str] = []
    files: list[dict[str, Any]] = []
    for p in paths:
        log.info("convert_start", file=str(p))
        try:
            n, written = convert_file(p, tables, cfg)
        except (ScribeError, OSError, UnicodeDecodeError) as e:
            failed += 1
            files.append({"file": str(p), "pieces": 0, "ok": False, "error": str(e)})
            log.error("convert_failed", file=str(p), error=str(e), kind=type(e).__name__)
            continue
        converted += 1
        pieces += n
        outputs.extend(str(w) for w in written)
        files.append({"file": str(p), "pieces": n, "ok": True, "error": None})
        log.info("convert_done", file=str(p), pieces=n, outputs=len(written))

    return {
        "converted": converted,
        "failed": failed,
        "pieces": pieces,
        "outputs": outputs,
        "files": files,
    }
