"""Abstract base formatter, output container, and shared timecode helpers.

WHY: Every output format consumes the same Transcript IR but produces
different file content. This base class enforces a consistent interface
so the CLI and pipeline can work with any formatter generically.

HOW: BaseFormatter is an ABC with two requirements: a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content and MIME type. srt_timestamp()
and clock_timestamp() are the two timecode renderings formatters share.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list of FormatterOutput (one item for every
  built-in format)
- ``format()`` is pure: same Transcript + options → identical content
- ``suffix`` is appended to the source stem, e.g. ``"_summary.txt"``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List

from transcript_converter.core.ir import Transcript


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``".srt"`` → ``"interview.srt"``.
        content: The file content as a string.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


def srt_timestamp(seconds: float) -> str:
    """Convert seconds to SRT timestamp format: HH:MM:SS,mmm

    Works on whole milliseconds so float noise (2.1 → 2.0999…) cannot
    shave a millisecond off the rendered value.
    """
    total_ms = int(round(max(seconds, 0.0) * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return "{:02d}:{:02d}:{:02d},{:03d}".format(hours, minutes, secs, millis)


def clock_timestamp(seconds: float) -> str:
    """Convert seconds to HH:MM:SS (fractional seconds truncated)."""
    total = int(max(seconds, 0.0))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return "{:02d}:{:02d}:{:02d}".format(hours, minutes, secs)


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    # True for formatters that merge and label speakers; the pipeline only
    # loads the diarization config for these.
    uses_speaker_options = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SRT Subtitles'."""

    @abstractmethod
    def format(self, transcript: Transcript, speaker_options: Any = None) -> List[FormatterOutput]:
        """Convert the Transcript IR into one or more output files.

        Args:
            transcript: The normalized transcript (segments + metadata).
            speaker_options: A DiarizationConfig, a raw speaker_diarization
                mapping, or None. Formatters that do not label speakers
                ignore it.

        Returns:
            List of FormatterOutput objects.
        """
