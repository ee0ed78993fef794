"""File-level glue: input path in, rendered content out.

WHY: The CLI (and any script embedding the converter) wants one call per
job: read a transcript file, normalize it, optionally load the speaker
configuration, and render. Keeping that sequence here leaves the CLI
with argument parsing and file writing only.

HOW: convert_file() resolves the formatter first so an unsupported name
fails before the input is read, then loads, normalizes and formats.
analyze_file() loads, filters and renders an analysis report.

RULES:
- No file writes happen here; results carry content strings
- Unsupported formats fail before any input is read
- The diarization config is loaded only for formatters that use it, and
  only when the caller did not pass speaker_options explicitly
- Status messages go through the optional on_status callback
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from transcript_converter.config import DEFAULT_EXPORT_FORMAT, load_diarization_config
from transcript_converter.core.fields import get_field_options
from transcript_converter.core.ir import Segment, Transcript
from transcript_converter.core.normalizer import load_transcript
from transcript_converter.core.query import (
    extract_fields,
    filter_by_software,
    filter_by_speaker,
    filter_by_topic,
)
from transcript_converter.formatters import get_formatter
from transcript_converter.formatters.analysis_report import render_analysis, resolve_analysis_format
from transcript_converter.formatters.base import FormatterOutput

logger = logging.getLogger(__name__)

StatusCallback = Optional[Callable[[str], None]]


def _report(message: str, on_status: StatusCallback) -> None:
    logger.info(message)
    if on_status is not None:
        on_status(message)


@dataclass
class ConversionResult:
    """Outcome of convert_file().

    Attributes:
        transcript: The normalized input.
        outputs: Formatter outputs (one for every built-in format).
    """

    transcript: Transcript
    outputs: List[FormatterOutput]

    @property
    def content(self) -> str:
        return "".join(output.content for output in self.outputs)


@dataclass
class AnalysisResult:
    """Outcome of analyze_file().

    Attributes:
        transcript: The normalized input (all segments).
        segments: Segments left after the filters, in input order.
        fields: Display names included in rows.
        rows: extract_fields() output for ``segments``.
        content: Rendered report, or None when no export format was given.
        export_format: Canonical report format name, or None.
    """

    transcript: Transcript
    segments: List[Segment]
    fields: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    content: Optional[str] = None
    export_format: Optional[str] = None


def convert_file(
    input_path: Union[str, Path],
    target_format: str = DEFAULT_EXPORT_FORMAT,
    speaker_options: Any = None,
    config_path: Optional[Union[str, Path]] = None,
    on_status: StatusCallback = None,
) -> ConversionResult:
    """Read, normalize and render one transcript file.

    Args:
        input_path: Raw ASR response or legacy segment file.
        target_format: Registered format name or alias.
        speaker_options: Explicit diarization settings. When None and the
            formatter labels speakers, the YAML config at ``config_path``
            (or the default location) is consulted.
        config_path: YAML configuration file.
        on_status: Optional progress callback.

    Raises:
        UnsupportedFormatError: Before reading the input.
        InputNotFoundError, InvalidInputError, UnrecognizedFormatError:
            From loading the input.
    """
    formatter = get_formatter(target_format)

    transcript = load_transcript(input_path)
    _report(
        "Loaded {} ({} format, {} segments)".format(
            transcript.source_filename, transcript.source_format, len(transcript.segments)
        ),
        on_status,
    )

    if speaker_options is None and formatter.uses_speaker_options:
        speaker_options = load_diarization_config(config_path, on_status=on_status)

    _report("Running {} formatter...".format(formatter.name), on_status)
    outputs = formatter.format(transcript, speaker_options)
    return ConversionResult(transcript=transcript, outputs=outputs)


def analyze_file(
    input_path: Union[str, Path],
    fields: Optional[Sequence[str]] = None,
    topic: Optional[str] = None,
    software: Optional[str] = None,
    speaker: Optional[int] = None,
    export_format: Optional[str] = None,
    on_status: StatusCallback = None,
) -> AnalysisResult:
    """Load a transcript, apply filters, and extract the selected fields.

    HOW: Filters are applied in order topic → software → speaker; each
    narrows the previous result. Field defaults are computed against the
    full document so the column set does not depend on the filters.

    Raises:
        UnsupportedFormatError: For an unknown export_format, before
            reading the input.
        InputNotFoundError, InvalidInputError, UnrecognizedFormatError
    """
    if export_format is not None:
        export_format = resolve_analysis_format(export_format)

    transcript = load_transcript(input_path)
    metadata = transcript.metadata

    segments = list(transcript.segments)
    if topic is not None:
        segments = filter_by_topic(segments, topic)
    if software is not None:
        segments = filter_by_software(segments, software)
    if speaker is not None:
        segments = filter_by_speaker(segments, speaker)
    _report(
        "{} of {} segments match".format(len(segments), len(transcript.segments)),
        on_status,
    )

    selected = list(fields) if fields else get_field_options(transcript.segments, metadata)
    rows = extract_fields(segments, metadata, selected)

    content = None
    if export_format is not None:
        content = render_analysis(segments, metadata, export_format, selected)

    return AnalysisResult(
        transcript=transcript,
        segments=segments,
        fields=selected,
        rows=rows,
        content=content,
        export_format=export_format,
    )
