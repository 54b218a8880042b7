from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Sequence, Union

from pqrunner.stream.fold import QueryResult
from pqrunner.utils.formatting import md_escape

logger = logging.getLogger(__name__)


def answer_cell(r: QueryResult) -> str:
    if r.errors:
        return f"ERROR: {'; '.join(r.errors)}"
    meta = f"artifacts={r.artifact_count}. time={r.elapsed_s:.2f}s."
    return f"{meta} {r.final_message or '(no final message)'}"


def build_report(results: Sequence[QueryResult], source: str = "") -> str:
    """Render results as a two-column markdown table followed by a summary."""
    lines: List[str] = []
    lines.append("# Query Results")
    lines.append("")
    if source:
        lines.append(f"- Source: `{source}`")
    lines.append(f"- Generated: {datetime.now().isoformat(timespec='seconds')}")
    lines.append("")

    lines.append("| Question | Answer |")
    lines.append("|---|---|")
    for r in results:
        lines.append(f"| {md_escape(r.question)} | {md_escape(answer_cell(r))} |")

    n = len(results)
    failed = sum(1 for r in results if not r.ok)
    completed = sum(1 for r in results if r.completed)

    # outside the table so it stays two columns
    lines.append("")
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- Total questions: **{n}**")
    lines.append(f"- Completed: **{completed}**, with errors: **{failed}**")
    if n:
        avg = sum(r.elapsed_s for r in results) / float(n)
        lines.append(f"- Avg time: **{avg:.2f}s**")

    return "\n".join(lines) + "\n"


def write_report(results: Sequence[QueryResult], path: Union[str, Path], source: str = "") -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(build_report(results, source=source), encoding="utf-8")
    logger.info("Report written: questions=%s output=%s", len(results), out_path)
    return out_path
