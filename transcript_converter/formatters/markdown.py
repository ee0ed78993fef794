"""Markdown transcript formatter.

WHY: Transcripts end up in notes, wikis and pull requests. Markdown keeps
the timing and the analyst enrichment readable without any tooling.

HOW: A "# Transcript" heading, optional Summary and Topics sections from
the document metadata, then a "## Segments" section with one block per
segment: a "### start -> end" heading, the speaker (when known), the text,
and enrichment fields as sub-bullets.

RULES:
- Segment headings use HH:MM:SS timestamps
- Speaker lines use the 1-based ordinal ("Speaker 1" for id 0)
- Enrichment bullets appear only when the field has data:
  Topic, Keywords, AI Analysis, Software, Software Detections
- Output ends with exactly one newline
- Output suffix: ".md"; media type "text/markdown"
"""

from __future__ import annotations

from typing import Any, List

from transcript_converter.core.ir import Segment, Transcript
from transcript_converter.formatters.base import BaseFormatter, FormatterOutput, clock_timestamp


def _segment_block(segment: Segment) -> List[str]:
    lines = ["### {} -> {}".format(
        clock_timestamp(segment.start_time), clock_timestamp(segment.end_time)
    ), ""]
    if segment.speaker is not None:
        lines.append("**Speaker {}**".format(segment.speaker + 1))
        lines.append("")
    if segment.text:
        lines.append(segment.text)
        lines.append("")

    bullets = []
    if segment.topic:
        bullets.append("- **Topic**: {}".format(segment.topic))
    if segment.keywords:
        bullets.append("- **Keywords**: {}".format(", ".join(segment.keywords)))
    if segment.ai_analysis:
        bullets.append("- **AI Analysis**: {}".format(segment.ai_analysis))
    if segment.software_detected:
        bullets.append("- **Software**: {}".format(segment.software_detected))
    if segment.software_detections:
        bullets.append("- **Software Detections**: {}".format(", ".join(segment.software_detections)))
    if bullets:
        lines.extend(bullets)
        lines.append("")
    return lines


class MarkdownFormatter(BaseFormatter):
    """Formatter that renders the transcript as a Markdown document."""

    @property
    def name(self) -> str:
        return "Markdown"

    def format(self, transcript: Transcript, speaker_options: Any = None) -> List[FormatterOutput]:
        metadata = transcript.metadata
        lines = ["# Transcript", ""]
        if transcript.source_filename:
            lines.extend(["_Source: {}_".format(transcript.source_filename), ""])

        if metadata.summary:
            lines.extend(["## Summary", "", metadata.summary, ""])

        if metadata.topics:
            lines.extend(["## Topics", ""])
            for topic in metadata.topics:
                if topic.confidence is not None:
                    lines.append("- {} ({:.2f})".format(topic.name, topic.confidence))
                else:
                    lines.append("- {}".format(topic.name))
            lines.append("")

        if transcript.segments:
            lines.extend(["## Segments", ""])
            for segment in transcript.segments:
                lines.extend(_segment_block(segment))

        content = "\n".join(lines).rstrip("\n") + "\n"
        return [
            FormatterOutput(
                suffix=".md",
                content=content,
                media_type="text/markdown",
            )
        ]
