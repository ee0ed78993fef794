"""Speaker-diarization configuration, segment merging, and speaker labels.

WHY: ASR utterances are often short, so a subtitle file built one cue per
utterance flickers between fragments of the same person's speech. When
diarization is enabled, adjacent utterances from the same speaker are
merged into one cue and each cue is prefixed with a speaker label.

HOW: DiarizationConfig holds the six validated settings. merge_segments()
is a single left-to-right pass that folds each segment into the previous
merge group when the merge rules allow it, then prunes short merge
artifacts. SpeakerLabeler turns speaker ids into label text.

RULES:
- Two segments merge when they are adjacent, share a non-None speaker,
  both meet confidence_threshold (missing confidence is always eligible),
  and the gap between them is at most MAX_MERGE_GAP_S
- Merged: earliest start, latest end, texts joined by one space,
  minimum confidence, first segment's id and enrichment
- A merged segment shorter than min_segment_duration is dropped only when
  every contributing segment was itself shorter; unmerged input segments
  are never dropped
- Label ordinal is speaker id + 1; speakers beyond max_speakers (in order
  of first appearance) get the "?" fallback label
- Invalid settings raise InvalidConfigurationError; resolve_speaker_options()
  converts that into "diarization disabled" (None)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from transcript_converter.core.ir import Segment
from transcript_converter.errors import InvalidConfigurationError

logger = logging.getLogger(__name__)

# Largest silence (seconds) between two same-speaker segments that still merge.
MAX_MERGE_GAP_S = 1.0

LABEL_PLACEHOLDER = "%d"
FALLBACK_ORDINAL = "?"

DEFAULT_CONFIDENCE_THRESHOLD = 0.8
DEFAULT_LABEL_FORMAT = "[Speaker %d]: "
DEFAULT_MIN_SEGMENT_DURATION = 1.0
DEFAULT_MAX_SPEAKERS = 10


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class DiarizationConfig:
    """Validated speaker-diarization settings.

    RULES:
    - confidence_threshold: float in [0.0, 1.0]
    - label_format: contains exactly one "%d"
    - min_segment_duration: float >= 0.0 seconds
    - max_speakers: int >= 1
    - Construct through from_dict() so validation always runs
    """

    enable: bool = False
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    label_format: str = DEFAULT_LABEL_FORMAT
    merge_consecutive_segments: bool = True
    min_segment_duration: float = DEFAULT_MIN_SEGMENT_DURATION
    max_speakers: int = DEFAULT_MAX_SPEAKERS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DiarizationConfig:
        """Build a config from a ``speaker_diarization`` mapping.

        HOW: Missing or null keys take their defaults; every present value
        is checked and the first violation raises.

        Raises:
            InvalidConfigurationError: With ``field`` set to the bad setting.
        """
        if not isinstance(data, Mapping):
            raise InvalidConfigurationError(
                "speaker_diarization", "must be a mapping, got {!r}".format(data)
            )

        def get(key: str, default: Any) -> Any:
            value = data.get(key)
            return default if value is None else value

        threshold = get("confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD)
        if not _is_number(threshold) or not 0.0 <= threshold <= 1.0:
            raise InvalidConfigurationError(
                "confidence_threshold",
                "must be a number between 0.0 and 1.0, got {!r}".format(threshold),
            )

        label_format = get("label_format", DEFAULT_LABEL_FORMAT)
        if not isinstance(label_format, str) or label_format.count(LABEL_PLACEHOLDER) != 1:
            raise InvalidConfigurationError(
                "label_format",
                "must be a string containing exactly one '%d' placeholder, got {!r}".format(label_format),
            )

        min_duration = get("min_segment_duration", DEFAULT_MIN_SEGMENT_DURATION)
        if not _is_number(min_duration) or min_duration < 0.0:
            raise InvalidConfigurationError(
                "min_segment_duration",
                "must be a non-negative number, got {!r}".format(min_duration),
            )

        max_speakers = get("max_speakers", DEFAULT_MAX_SPEAKERS)
        if isinstance(max_speakers, bool) or not isinstance(max_speakers, int) or max_speakers < 1:
            raise InvalidConfigurationError(
                "max_speakers",
                "must be a positive integer, got {!r}".format(max_speakers),
            )

        return cls(
            enable=bool(get("enable", False)),
            confidence_threshold=float(threshold),
            label_format=label_format,
            merge_consecutive_segments=bool(get("merge_consecutive_segments", True)),
            min_segment_duration=float(min_duration),
            max_speakers=max_speakers,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enable": self.enable,
            "confidence_threshold": self.confidence_threshold,
            "label_format": self.label_format,
            "merge_consecutive_segments": self.merge_consecutive_segments,
            "min_segment_duration": self.min_segment_duration,
            "max_speakers": self.max_speakers,
        }


def resolve_speaker_options(options: Any) -> Optional[DiarizationConfig]:
    """Turn caller-supplied speaker options into an enabled config or None.

    WHY: Invalid diarization settings must never abort an export. Callers
    may hand over an already-validated config, a raw mapping straight from
    YAML, or nothing at all.

    HOW: Mappings are validated with DiarizationConfig.from_dict(); a
    validation failure is logged as a warning naming the bad setting and
    yields None. Disabled configs also yield None.

    Returns:
        An enabled DiarizationConfig, or None when diarization is off.
    """
    if options is None:
        return None
    if isinstance(options, DiarizationConfig):
        config = options
    else:
        try:
            config = DiarizationConfig.from_dict(options)
        except InvalidConfigurationError as e:
            logger.warning("Invalid speaker configuration (%s); speaker diarization disabled", e)
            return None
    return config if config.enable else None


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


class _MergeGroup:
    """Running merge state for one output segment.

    Not a public class. Tracks how many inputs were folded in and whether
    all of them were shorter than the minimum duration.
    """

    __slots__ = ("segment", "members", "all_short")

    def __init__(self, segment: Segment, short: bool) -> None:
        self.segment = segment
        self.members = 1
        self.all_short = short


def _confidence_ok(segment: Segment, threshold: float) -> bool:
    return segment.confidence is None or segment.confidence >= threshold


def can_merge(
    first: Segment,
    second: Segment,
    config: DiarizationConfig,
    max_gap: float = MAX_MERGE_GAP_S,
) -> bool:
    """True when ``second`` may be folded into the adjacent ``first``."""
    if first.speaker is None or first.speaker != second.speaker:
        return False
    if not (_confidence_ok(first, config.confidence_threshold)
            and _confidence_ok(second, config.confidence_threshold)):
        return False
    return second.start_time - first.end_time <= max_gap


def combine_segments(first: Segment, second: Segment) -> Segment:
    """Merge two same-speaker segments into a new Segment (inputs untouched)."""
    confidences = [c for c in (first.confidence, second.confidence) if c is not None]
    return replace(
        first,
        start_time=min(first.start_time, second.start_time),
        end_time=max(first.end_time, second.end_time),
        text=" ".join(t for t in (first.text, second.text) if t),
        confidence=min(confidences) if confidences else None,
        keywords=list(first.keywords),
        software_detections=list(first.software_detections),
    )


def merge_segments(
    segments: Sequence[Segment],
    config: DiarizationConfig,
    max_gap: float = MAX_MERGE_GAP_S,
) -> List[Segment]:
    """Merge adjacent same-speaker segments and prune short merge artifacts.

    WHY: Produces the cue list for speaker-aware subtitles.

    HOW: One pass builds merge groups; a second pass drops groups that are
    merge artifacts shorter than min_segment_duration built entirely from
    short inputs.

    Args:
        segments: Normalized segments, ordered by start_time.
        config: Validated configuration. Nothing is merged when enable or
            merge_consecutive_segments is False.
        max_gap: Largest silence (seconds) that still counts as adjacent.

    Returns:
        A new list; input Segment objects are never mutated.
    """
    if not config.enable or not config.merge_consecutive_segments:
        return list(segments)

    min_duration = config.min_segment_duration
    groups: List[_MergeGroup] = []
    for segment in segments:
        short = segment.duration < min_duration
        if groups and can_merge(groups[-1].segment, segment, config, max_gap):
            group = groups[-1]
            group.segment = combine_segments(group.segment, segment)
            group.members += 1
            group.all_short = group.all_short and short
        else:
            groups.append(_MergeGroup(segment, short))

    merged: List[Segment] = []
    for group in groups:
        if group.members > 1 and group.all_short and group.segment.duration < min_duration:
            logger.debug(
                "Dropping merged segment %s (%.3fs < %.3fs)",
                group.segment.segment_id, group.segment.duration, min_duration,
            )
            continue
        merged.append(group.segment)
    return merged


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


class SpeakerLabeler:
    """Formats speaker labels for one document.

    RULES:
    - The first max_speakers distinct speakers (by first appearance) are
      labelled with their ordinal (id + 1)
    - Any later speaker gets label_format with "%d" replaced by "?"
    - Segments without a speaker get no label
    """

    def __init__(self, config: DiarizationConfig, segments: Sequence[Segment]) -> None:
        self.config = config
        self.honored: List[int] = []
        for segment in segments:
            if (segment.speaker is not None
                    and segment.speaker not in self.honored
                    and len(self.honored) < config.max_speakers):
                self.honored.append(segment.speaker)

    def label(self, speaker: Optional[int]) -> str:
        if speaker is None:
            return ""
        if speaker in self.honored:
            ordinal = str(speaker + 1)
        else:
            ordinal = FALLBACK_ORDINAL
        return self.config.label_format.replace(LABEL_PLACEHOLDER, ordinal)
