"""Analysis report export: selected fields per segment as JSON, Markdown or CSV.

WHY: After inspecting a transcript with the query engine, analysts want
to hand the result to someone else, as a spreadsheet or a readable
report. This is the export side of the ``analyze`` command.

HOW: extract_fields() produces the rows; each format lays them out.
JSON adds the summary statistics, topics and software lists alongside
the rows. Markdown opens with an overview. CSV is one column per
selected field, written with the csv module.

RULES:
- Formats: "json", "markdown" (alias "md"), "csv"; anything else raises
  UnsupportedFormatError
- selected_fields defaults to get_field_options() for the given segments
- JSON output has sorted keys and a trailing newline
- CSV header is the selected display names, in the order given; missing
  values are empty cells
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Dict, List, Optional, Sequence

from transcript_converter.core.fields import get_field, get_field_options
from transcript_converter.core.ir import DocumentMetadata, Segment
from transcript_converter.core.query import (
    extract_fields,
    get_all_software,
    get_all_topics,
    has_ai_analysis,
    has_software_detection,
    summary_stats,
)
from transcript_converter.errors import UnsupportedFormatError

ANALYSIS_FORMATS = ("json", "markdown", "csv")

ANALYSIS_SUFFIXES = {
    "json": "_analysis.json",
    "markdown": "_analysis.md",
    "csv": "_analysis.csv",
}


def resolve_analysis_format(name: str) -> str:
    key = str(name).strip().lower()
    if key == "md":
        key = "markdown"
    if key not in ANALYSIS_FORMATS:
        raise UnsupportedFormatError(name, list(ANALYSIS_FORMATS))
    return key


def _render_json(
    rows: List[Dict[str, Any]],
    segments: Sequence[Segment],
    metadata: DocumentMetadata,
) -> str:
    report = {
        "summary": summary_stats(segments, metadata),
        "topics": get_all_topics(segments, metadata),
        "software": get_all_software(segments),
        "rows": rows,
    }
    return json.dumps(report, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _render_markdown(
    rows: List[Dict[str, Any]],
    segments: Sequence[Segment],
    metadata: DocumentMetadata,
    fields: Sequence[str],
) -> str:
    stats = summary_stats(segments, metadata)
    lines = [
        "# Transcript Analysis",
        "",
        "## Overview",
        "",
        "- **Total Segments**: {}".format(stats["total_segments"]),
        "- **Fields with Data**: {} of {}".format(stats["fields_with_data"], stats["available_fields"]),
        "- **Has AI Analysis**: {}".format(_yes_no(has_ai_analysis(segments))),
        "- **Has Software Detection**: {}".format(_yes_no(has_software_detection(segments))),
        "",
    ]
    topics = get_all_topics(segments, metadata)
    if topics:
        lines.append("- **Topics**: {}".format(", ".join(topics)))
        lines.append("")

    if rows:
        lines.extend(["## Segments", ""])
    for number, row in enumerate(rows, 1):
        lines.extend(["### Segment {}".format(number), ""])
        for name in fields:
            if name in row:
                lines.append("- **{}**: {}".format(name, row[name]))
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def _render_csv(rows: List[Dict[str, Any]], fields: Sequence[str]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fields), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def render_analysis(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata],
    fmt: str,
    selected_fields: Optional[Sequence[str]] = None,
) -> str:
    """Render the selected fields of every segment as a report.

    Args:
        segments: Segments to report on (typically already filtered).
        metadata: Document metadata backing Topics/Summary.
        fmt: "json", "markdown"/"md" or "csv".
        selected_fields: Display names to include. Unknown names are
            dropped. None means every field with data.

    Returns:
        The report content.

    Raises:
        UnsupportedFormatError: For an unknown fmt.
    """
    key = resolve_analysis_format(fmt)
    meta = metadata if metadata is not None else DocumentMetadata()
    if selected_fields is None:
        fields = get_field_options(segments, meta)
    else:
        fields = [name for name in selected_fields if get_field(name) is not None]

    rows = extract_fields(segments, meta, fields)
    if key == "json":
        return _render_json(rows, segments, meta)
    if key == "markdown":
        return _render_markdown(rows, segments, meta, fields)
    return _render_csv(rows, fields)
