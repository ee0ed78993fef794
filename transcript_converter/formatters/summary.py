"""Condensed plain-text summary formatter.

WHY: A quick look at a transcript rarely needs the full text. The summary
answers "what is in this file" in a dozen lines: the synopsis, how much
was said, how long it runs, and which topics and intents came up.

HOW: Pull text_stats() from the query engine and lay the numbers out under
fixed headings. Topic and intent lists follow their counts.

RULES:
- Sections in order: title, Summary (only if metadata has one),
  Content Overview, Topics, Intents, Duration
- Duration uses the metadata duration when known, else the last end_time,
  rendered as HH:MM:SS
- Output ends with exactly one newline
- Output suffix: "_summary.txt"; media type "text/plain"
"""

from __future__ import annotations

from typing import Any, List

from transcript_converter.core.ir import Transcript
from transcript_converter.core.query import get_all_topics, text_stats
from transcript_converter.formatters.base import BaseFormatter, FormatterOutput, clock_timestamp

TITLE = "Transcript Summary"


class SummaryFormatter(BaseFormatter):
    """Formatter that writes aggregate statistics as plain text."""

    @property
    def name(self) -> str:
        return "Summary"

    def format(self, transcript: Transcript, speaker_options: Any = None) -> List[FormatterOutput]:
        segments = transcript.segments
        metadata = transcript.metadata
        stats = text_stats(segments, metadata)
        topics = get_all_topics(segments, metadata)

        lines = [TITLE, "=" * len(TITLE), ""]
        if metadata.summary:
            lines.extend(["Summary:", metadata.summary, ""])

        lines.extend([
            "Content Overview:",
            "  - Segments: {}".format(len(segments)),
            "  - Total Words: {}".format(stats["total_words"]),
            "  - Total Sentences: {}".format(stats["total_sentences"]),
            "  - Total Paragraphs: {}".format(stats["total_paragraphs"]),
            "  - Transcript Length: {} characters".format(stats["transcript_length"]),
            "",
            "Topics Identified: {}".format(len(topics)),
        ])
        lines.extend("  - {}".format(topic) for topic in topics)
        lines.append("")

        lines.append("Intents Detected: {}".format(stats["total_intents"]))
        lines.extend("  - {}".format(intent) for intent in metadata.intents)
        lines.append("")

        if metadata.sentiment:
            lines.extend(["Sentiment: {}".format(metadata.sentiment), ""])

        lines.append("Duration: {}".format(clock_timestamp(stats["total_duration"])))

        return [
            FormatterOutput(
                suffix="_summary.txt",
                content="\n".join(lines) + "\n",
                media_type="text/plain",
            )
        ]
