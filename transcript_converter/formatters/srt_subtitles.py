"""SRT subtitle formatter with optional speaker diarization.

WHY: Subtitle players need numbered, timed cues. When diarization is
enabled, adjacent same-speaker utterances are merged into single cues and
each cue names its speaker, so viewers can follow a conversation.

HOW: Resolve the speaker options into an enabled DiarizationConfig (or
None). With a config, run merge_segments() first and label each cue via
SpeakerLabeler. Then emit one cue per segment: index line, timestamp
line, body line, blank line.

RULES:
- Cue index starts at 1, one cue per (post-merge) segment, in order
- A segment with an empty body is skipped and the cues renumbered; an
  empty text line would end the cue early
- Timestamps: "HH:MM:SS,mmm --> HH:MM:SS,mmm"
- Body: segment text, prefixed with the speaker label only when
  diarization is enabled and the segment has a speaker
- Invalid speaker options disable labelling; they never raise
- No segments → empty string
- Output suffix: ".srt"; media type "application/x-subrip"
"""

from __future__ import annotations

from typing import Any, List

from transcript_converter.core.diarization import (
    SpeakerLabeler,
    merge_segments,
    resolve_speaker_options,
)
from transcript_converter.core.ir import Transcript
from transcript_converter.formatters.base import BaseFormatter, FormatterOutput, srt_timestamp


class SRTFormatter(BaseFormatter):
    """Formatter that produces one SRT cue per segment."""

    uses_speaker_options = True

    @property
    def name(self) -> str:
        return "SRT Subtitles"

    def format(self, transcript: Transcript, speaker_options: Any = None) -> List[FormatterOutput]:
        config = resolve_speaker_options(speaker_options)
        segments = transcript.segments
        labeler = None
        if config is not None:
            segments = merge_segments(segments, config)
            labeler = SpeakerLabeler(config, segments)

        lines: List[str] = []
        index = 0
        for segment in segments:
            body = segment.text
            if labeler is not None and segment.speaker is not None:
                body = labeler.label(segment.speaker) + body
            if not body:
                continue
            index += 1
            lines.append(str(index))
            lines.append("{} --> {}".format(
                srt_timestamp(segment.start_time), srt_timestamp(segment.end_time)
            ))
            lines.append(body)
            lines.append("")

        return [
            FormatterOutput(
                suffix=".srt",
                content="\n".join(lines),
                media_type="application/x-subrip",
            )
        ]
