"""Output formatter registry and the render entry point.

WHY: The CLI and the pipeline need a single lookup to find the right
formatter by name. A central dict makes it trivial to add new formats:
create the formatter class, import it here, add one line.

HOW: FORMATTERS maps format names to formatter *classes* (not instances).
get_formatter() normalizes the requested name (case, aliases) and
instantiates. render() wraps loose segments and metadata in a Transcript
and returns the single output's content.

RULES:
- Keys are lowercase format names (used in CLI flags and config)
- Values are BaseFormatter subclasses (not instances)
- Unknown names raise UnsupportedFormatError before any work is done
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from transcript_converter.core.ir import LEGACY_SHAPE, DocumentMetadata, Segment, Transcript
from transcript_converter.errors import UnsupportedFormatError
from transcript_converter.formatters.json_export import JSONFormatter
from transcript_converter.formatters.markdown import MarkdownFormatter
from transcript_converter.formatters.srt_subtitles import SRTFormatter
from transcript_converter.formatters.summary import SummaryFormatter

if TYPE_CHECKING:
    from transcript_converter.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "srt": SRTFormatter,
    "markdown": MarkdownFormatter,
    "json": JSONFormatter,
    "summary": SummaryFormatter,
}

FORMAT_ALIASES = {"md": "markdown"}


def supported_formats() -> List[str]:
    return list(FORMATTERS)


def resolve_format_name(name: str) -> str:
    """Canonical registry key for ``name``.

    Raises:
        UnsupportedFormatError: If the name is not a known format or alias.
    """
    key = str(name).strip().lower()
    key = FORMAT_ALIASES.get(key, key)
    if key not in FORMATTERS:
        raise UnsupportedFormatError(name, supported_formats())
    return key


def get_formatter(name: str) -> BaseFormatter:
    return FORMATTERS[resolve_format_name(name)]()


def render_transcript(
    transcript: Transcript,
    target_format: str,
    speaker_options: Any = None,
) -> str:
    """Render a normalized Transcript and return the output content."""
    formatter = get_formatter(target_format)
    outputs = formatter.format(transcript, speaker_options)
    return "".join(output.content for output in outputs)


def render(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata],
    target_format: str,
    speaker_options: Any = None,
    source_filename: str = "",
) -> str:
    """Render a segment sequence into one of the supported formats.

    Args:
        segments: Normalized segments.
        metadata: Document metadata (empty metadata if None).
        target_format: "srt", "markdown" (or "md"), "json" or "summary",
            case-insensitive.
        speaker_options: DiarizationConfig, raw speaker_diarization mapping,
            or None. Invalid mappings disable diarization with a warning.
        source_filename: Shown by formats that name their source.

    Returns:
        The rendered content.

    Raises:
        UnsupportedFormatError: For any other target_format.
    """
    formatter = get_formatter(target_format)
    transcript = Transcript(
        segments=list(segments),
        metadata=metadata if metadata is not None else DocumentMetadata(),
        source_format=LEGACY_SHAPE,
        source_filename=source_filename,
    )
    return "".join(output.content for output in formatter.format(transcript, speaker_options))
