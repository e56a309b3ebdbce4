from __future__ import annotations

import logging
from pathlib import Path

import typer

from neoscribe.common.config import AppConfig, load_yaml
from neoscribe.common.errors import ScribeError
from neoscribe.common.logging import log, setup_logging
from neoscribe.scribe.dump import format_document, summarize_document, write_summary_csv
from neoscribe.scribe.reader import load_scribe_file
from neoscribe.scribe.tables import ScribeTables, load_tables
from neoscribe.services.convert import convert_files

app = typer.Typer(help="Scribe chant/trecento files to NeoScribeXML (MEI).")

OPT_VERBOSE = typer.Option(False, "--verbose", "-v", help="Verbose (debug) JSON logs.")

ARG_FILES = typer.Argument(..., help="Scribe files to convert.")
OPT_ENCODER = typer.Option(
    None, "--encoder", "-e", help="Name recorded as encoder in the MEI header."
)
OPT_CONFIG = typer.Option(None, "--config", help="YAML config (tables, encoder, encoding).")
OPT_DATA_DIR = typer.Option(
    None, "--data-dir", help="Folder with neumcode_*.csv and sourcekey.tab."
)
OPT_OUT_DIR = typer.Option(
    None, "--out", "-o", help="Output folder (default: next to each input file)."
)

ARG_DUMP_FILE = typer.Argument(..., help="Scribe file to list.")
ARG_INSPECT_FILES = typer.Argument(..., help="Scribe files to summarize.")
OPT_INSPECT_OUT = typer.Option(None, "--out", help="Optional CSV path for per-part statistics.")


def _effective_config(
    config: Path | None,
    data_dir: Path | None = None,
    encoder: str | None = None,
    out_dir: Path | None = None,
) -> AppConfig:
    cfg = load_yaml(config) if config else AppConfig()
    updates: dict = {}
    if data_dir is not None:
        updates["data_dir"] = data_dir
    if encoder is not None:
        updates["encoder"] = encoder
    if out_dir is not None:
        updates["out_dir"] = out_dir
    return cfg.model_copy(update=updates) if updates else cfg


def _tables_or_exit(cfg: AppConfig) -> ScribeTables:
    try:
        return load_tables(cfg)
    except ScribeError as e:
        log.error("tables_load_failed", data_dir=str(cfg.data_dir), error=str(e))
        typer.echo(f"Cannot load code tables: {e}", err=True)
        raise typer.Exit(code=2) from e


def _pieces_msg(n: int) -> str:
    return f"{n} piece(s) converted to NeoScribeXML."


@app.callback()
def main(verbose: bool = OPT_VERBOSE) -> None:
    setup_logging(logging.DEBUG if verbose else logging.INFO)
    if verbose:
        log.info("verbose_enabled")


@app.command("convert")
def convert(
    files: list[Path] = ARG_FILES,
    encoder: str | None = OPT_ENCODER,
    config: Path | None = OPT_CONFIG,
    data_dir: Path | None = OPT_DATA_DIR,
    out: Path | None = OPT_OUT_DIR,
) -> None:
    """Convert Scribe files to MEI; one output file per piece."""
    cfg = _effective_config(config, data_dir=data_dir, encoder=encoder, out_dir=out)
    if cfg.out_dir is not None:
        from neoscribe.common.logging import add_file_logging

        add_file_logging(cfg.out_dir / "logs" / "convert.jsonl")

    tables = _tables_or_exit(cfg)
    log.info("convert_batch_start", files=len(files), encoder=cfg.encoder)
    summary = convert_files(files, tables, cfg)

    for f in summary["files"]:
        if f["ok"]:
            typer.echo(f"{f['file']}: {_pieces_msg(f['pieces'])}")
        else:
            typer.echo(f"{f['file']}: failed ({f['error']})", err=True)
    typer.echo(_pieces_msg(summary["pieces"]))
    log.info(
        "convert_batch_done",
        converted=summary["converted"],
        failed=summary["failed"],
        pieces=summary["pieces"],
    )
    if summary["failed"]:
        raise typer.Exit(code=1)


@app.command("dump")
def dump(
    file: Path = ARG_DUMP_FILE,
    config: Path | None = OPT_CONFIG,
    data_dir: Path | None = OPT_DATA_DIR,
) -> None:
    """Print every loaded row of a Scribe file as plain text."""
    cfg = _effective_config(config, data_dir=data_dir)
    tables = _tables_or_exit(cfg)
    try:
        doc = load_scribe_file(file, tables.chant_codes, tables.trecento_codes, encoding=cfg.encoding)
    except (ScribeError, OSError) as e:
        typer.echo(f"{file}: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(format_document(doc), nl=False)


@app.command("inspect")
def inspect(
    files: list[Path] = ARG_INSPECT_FILES,
    out: Path | None = OPT_INSPECT_OUT,
    config: Path | None = OPT_CONFIG,
    data_dir: Path | None = OPT_DATA_DIR,
) -> None:
    """Statistics per file: parts, pieces, rows, events and syllables."""
    cfg = _effective_config(config, data_dir=data_dir)
    tables = _tables_or_exit(cfg)

    all_rows: list[dict] = []
    failed = 0
    for f in files:
        try:
            doc = load_scribe_file(f, tables.chant_codes, tables.trecento_codes, encoding=cfg.encoding)
        except (ScribeError, OSError) as e:
            failed += 1
            log.error("inspect_failed", file=str(f), error=str(e))
            typer.echo(f"{f}: {e}", err=True)
            continue
        summary, rows = summarize_document(doc, tables.codes_for(doc.format))
        typer.echo(
            f"{f}: format={summary.format} parts={summary.parts} pieces={summary.pieces} "
            f"rows={summary.rows} comments={summary.comment_rows} events={summary.events} "
            f"syllables={summary.syllables}"
        )
        if summary.code_types:
            typer.echo(
                "  types=" + ", ".join(f"{k}={v}" for k, v in summary.code_types.items())
            )
        all_rows.extend({"file": f.name, **r} for r in rows)

    if out:
        write_summary_csv(out, all_rows)
        typer.echo(f"Wrote per-part CSV → {out}")
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
