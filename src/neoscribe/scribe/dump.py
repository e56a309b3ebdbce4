from __future__ import annotations

import csv
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from neoscribe.common.model import ScribeDocument, ScribeRow
from neoscribe.scribe.codes import CodeTable


def format_row(row: ScribeRow) -> str:
    if row.is_comment:
        return "*" + row.comment
    out = ""
    for ev in row.events:
        out += ev.code + " ".join(str(p) for p in ev.pitches)
    if row.syllable:
        out += ";" + row.syllable
    return out


def format_document(doc: ScribeDocument) -> str:
    """Plain listing of every loaded row, one line each."""
    lines: list[str] = []
    for part in doc.parts:
        lines.extend(format_row(r) for r in part.rows)
    return "\n".join(lines) + ("\n" if lines else "")


@dataclass
class DocumentSummary:
    """Counts collected over one loaded Scribe document."""

    format: str
    parts: int
    pieces: int
    rows: int
    comment_rows: int
    events: int
    syllables: int
    code_types: dict[str, int] = field(default_factory=dict)


def summarize_document(
    doc: ScribeDocument, codes: CodeTable
) -> tuple[DocumentSummary, list[dict[str, Any]]]:
    rows = comments = events = syllables = 0
    type_counts: Counter[str] = Counter()
    per_part: list[dict[str, Any]] = []

    for part in doc.parts:
        p_rows = p_comments = p_events = p_syll = 0
        for r in part.rows:
            p_rows += 1
            if r.is_comment:
                p_comments += 1
                continue
            p_events += len(r.events)
            if r.syllable:
                p_syll += 1
            for ev in r.events:
                type_counts[codes.code_type(ev.code).value] += 1

        rows += p_rows
        comments += p_comments
        events += p_events
        syllables += p_syll
        per_part.append(
            {
                "part": part.part_id,
                "title": part.title,
                "rep_num": part.rep_num,
                "ms": part.abbrev_ms,
                "folios": part.folios,
                "clef": f"{part.initial_staff.clef}{part.initial_staff.clef_line}",
                "staff_lines": part.initial_staff.staff_lines,
                "rows": p_rows,
                "comments": p_comments,
                "events": p_events,
                "syllables": p_syll,
            }
        )

    summary = DocumentSummary(
        format=doc.format.value,
        parts=len(doc.parts),
        pieces=doc.piece_count,
        rows=rows,
        comment_rows=comments,
        events=events,
        syllables=syllables,
        code_types=dict(sorted(type_counts.items())),
    )
    return summary, per_part


def write_summary_csv(out_csv: Path, rows: list[dict[str, Any]]) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    if not rows:
        out_csv.write_text("", encoding="utf-8")
        return
    with out_csv.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        w.writeheader()
        w.writerows(rows)
