"""Query engine: field extraction, filtering, and statistics over the IR.

WHY: Analysts inspect transcripts before exporting them: which topics
came up, where a piece of software was mentioned, how much each speaker
talked. These queries only need the canonical Segment sequence, so they
work identically for raw and legacy sources.

HOW: Plain functions over (segments, metadata). extract_fields() walks the
field catalog; filters return ordered subsequences; the statistics
functions tokenize the concatenated segment text with simple regexes.

RULES:
- Filters never reorder or copy segments; they return the same objects
- extract_fields() yields exactly one row per segment
- A failing accessor skips that field for that row; the batch continues
- Topic and software matches are exact and case-sensitive
- Enrichment-based predicates are False for raw sources (no enrichment)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from transcript_converter.core.fields import (
    available_fields,
    get_field,
    get_field_options,
)
from transcript_converter.core.ir import DocumentMetadata, Segment

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\S+")
_SENTENCE_RE = re.compile(r"[^.!?]*[.!?]+|[^.!?]+$")


def _meta(metadata: Optional[DocumentMetadata]) -> DocumentMetadata:
    return metadata if metadata is not None else DocumentMetadata()


def _unique(values) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_fields(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata],
    selected_names: Sequence[str],
) -> List[Dict[str, Any]]:
    """Project the selected catalog fields into one row per segment.

    WHY: Callers (interactive inspection, CSV/Markdown reports) want a
    table keyed by display name, not IR attributes.

    HOW: Resolve each name through the catalog once, then read every
    segment. Unknown names and empty values are left out of the row.

    RULES:
    - Rows keep the order of selected_names
    - Array values are comma-joined; scalars keep their type
    - Topics/Summary repeat identically on every row
    - AttributeError/TypeError/ValueError from an accessor skip the field

    Args:
        segments: Normalized segments.
        metadata: Document metadata backing Topics and Summary.
        selected_names: Display names from available_fields().

    Returns:
        A list with one dict per segment.
    """
    meta = _meta(metadata)
    specs = [get_field(name) for name in selected_names]
    unknown = [name for name, spec in zip(selected_names, specs) if spec is None]
    if unknown:
        logger.debug("Ignoring unknown field names: %s", ", ".join(unknown))

    rows: List[Dict[str, Any]] = []
    for index, segment in enumerate(segments):
        row: Dict[str, Any] = {}
        for spec in specs:
            if spec is None:
                continue
            try:
                if not spec.present(segment, meta):
                    continue
                row[spec.name] = spec.extract(segment, meta)
            except (AttributeError, TypeError, ValueError) as e:
                logger.debug("Skipping field %r for segment %d: %s", spec.name, index, e)
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def filter_by_topic(segments: Sequence[Segment], topic: str) -> List[Segment]:
    """Segments whose topic equals ``topic`` exactly."""
    return [s for s in segments if s.topic == topic]


def filter_by_software(segments: Sequence[Segment], name: str) -> List[Segment]:
    """Segments where ``name`` is the detected software or one of the detections."""
    return [
        s for s in segments
        if s.software_detected == name or name in s.software_detections
    ]


def filter_by_speaker(segments: Sequence[Segment], speaker: int) -> List[Segment]:
    """Segments attributed to the given speaker id."""
    return [s for s in segments if s.speaker is not None and s.speaker == speaker]


# ---------------------------------------------------------------------------
# Predicates and collections
# ---------------------------------------------------------------------------


def has_ai_analysis(segments: Sequence[Segment]) -> bool:
    return any(s.ai_analysis for s in segments)


def has_software_detection(segments: Sequence[Segment]) -> bool:
    return any(s.software_detected for s in segments)


def get_all_topics(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata] = None,
) -> List[str]:
    """Distinct topics: segment topics when any exist, else metadata topics.

    Returned as an order-preserving list of unique strings.
    """
    segment_topics = _unique(s.topic for s in segments)
    if segment_topics:
        return segment_topics
    return _unique(_meta(metadata).topic_names)


def get_all_software(segments: Sequence[Segment]) -> List[str]:
    """Distinct software names from detections lists and single detections."""
    names: List[str] = []
    for segment in segments:
        names.extend(segment.software_detections)
        if segment.software_detected:
            names.append(segment.software_detected)
    return _unique(names)


def get_all_speakers(segments: Sequence[Segment]) -> List[int]:
    """Distinct speaker ids in order of first appearance."""
    seen: List[int] = []
    for segment in segments:
        if segment.speaker is not None and segment.speaker not in seen:
            seen.append(segment.speaker)
    return seen


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def count_words(text: str) -> int:
    return len(_WORD_RE.findall(text))


def count_sentences(text: str) -> int:
    return sum(1 for match in _SENTENCE_RE.findall(text) if match.strip())


def total_duration(segments: Sequence[Segment], metadata: Optional[DocumentMetadata] = None) -> float:
    """Audio duration: the header duration when known, else the last end_time."""
    meta = _meta(metadata)
    if meta.duration is not None:
        return meta.duration
    return max((s.end_time for s in segments), default=0.0)


def text_stats(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata] = None,
) -> Dict[str, Any]:
    """Word/sentence/paragraph/topic/intent counts over the concatenated text.

    RULES:
    - Words: whitespace-separated tokens
    - Sentences: runs ending in ".", "!" or "?" (a trailing fragment counts)
    - Paragraphs: one per segment with non-empty text
    """
    meta = _meta(metadata)
    paragraphs = [s.text for s in segments if s.text.strip()]
    full_text = "\n\n".join(paragraphs)
    return {
        "total_words": count_words(full_text),
        "total_sentences": sum(count_sentences(p) for p in paragraphs),
        "total_paragraphs": len(paragraphs),
        "total_topics": len(get_all_topics(segments, meta)),
        "total_intents": len(meta.intents),
        "transcript_length": len(full_text),
        "total_duration": total_duration(segments, meta),
    }


def summary_stats(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata] = None,
) -> Dict[str, Any]:
    """Catalog-level counts plus the text statistics.

    Returns:
        Dict with total_segments, available_fields, fields_with_data and
        every key from text_stats().
    """
    stats: Dict[str, Any] = {
        "total_segments": len(segments),
        "available_fields": len(available_fields()),
        "fields_with_data": len(get_field_options(segments, metadata)),
    }
    stats.update(text_stats(segments, metadata))
    return stats


def speaker_statistics(segments: Sequence[Segment]) -> Dict[str, Any]:
    """Per-speaker segment/word counts, talk time, and average confidence.

    RULES:
    - Only segments with a speaker id are counted
    - avg_confidence averages segment confidences that are present; 0.0 if none
    - speakers is keyed by speaker id, in order of first appearance
    """
    speakers: Dict[int, Dict[str, Any]] = {}
    confidences: Dict[int, List[float]] = {}
    for segment in segments:
        if segment.speaker is None:
            continue
        entry = speakers.setdefault(segment.speaker, {
            "segment_count": 0,
            "word_count": 0,
            "total_duration": 0.0,
            "avg_confidence": 0.0,
        })
        entry["segment_count"] += 1
        entry["word_count"] += count_words(segment.text)
        entry["total_duration"] += segment.duration
        if segment.confidence is not None:
            confidences.setdefault(segment.speaker, []).append(segment.confidence)

    all_confidences: List[float] = []
    for speaker, values in confidences.items():
        speakers[speaker]["avg_confidence"] = sum(values) / len(values)
        all_confidences.extend(values)

    return {
        "speaker_count": len(speakers),
        "total_words_with_speaker_data": sum(e["word_count"] for e in speakers.values()),
        "speakers": speakers,
        "overall_avg_confidence": (
            sum(all_confidences) / len(all_confidences) if all_confidences else 0.0
        ),
    }

