"""Source-shape detection and projection into the Transcript IR.

WHY: The ASR service has shipped two incompatible JSON shapes. The raw
response nests utterances and words under ``results``; the legacy shape is
a flat list of analyst-enriched segments. Every other module works on the
canonical IR, so this is the only place that knows either shape exists.

HOW: detect_format() resolves the tagged union once. The raw projection
emits one Segment per utterance (falling back to speaker-grouped words,
fixed word chunks, or the channel transcript when utterances are missing).
The legacy projection emits one Segment per input object, in input order.
Both also build DocumentMetadata. load_transcript() adds file reading and
JSON decoding on top, with distinct error kinds for each failure.

RULES:
- Raw shape: top-level object whose ``results`` holds ``channels`` or
  ``utterances``
- Legacy shape: a list of objects that each carry ``segment_id`` and
  ``transcript``; also accepted are a single such object and the JSON
  export envelope ``{"metadata": ..., "segments": [...]}``
- Raw segments are stably sorted by start_time; legacy order is preserved
- When utterances exist, segment count == utterance count
- end_time is clamped to start_time when a source reports it earlier
- Times and confidences must be finite; NaN/Infinity literals are invalid JSON
- Missing file → InputNotFoundError, bad JSON → InvalidInputError,
  anything else unexpected → UnrecognizedFormatError
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from transcript_converter.core.ir import (
    LEGACY_SHAPE,
    RAW_SHAPE,
    DocumentMetadata,
    Segment,
    Topic,
    Transcript,
)
from transcript_converter.errors import (
    InputNotFoundError,
    InvalidInputError,
    UnrecognizedFormatError,
)

logger = logging.getLogger(__name__)

# Words per segment when a raw response has neither utterances nor speaker tags.
WORD_CHUNK_SIZE = 50

# Legacy keys that carry the analyst's free-text analysis, in lookup order.
_AI_ANALYSIS_KEYS = ("ai_analysis", "gemini_analysis")


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def _is_raw_response(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    results = data.get("results")
    return isinstance(results, dict) and ("channels" in results or "utterances" in results)


def _is_legacy_segment(item: Any) -> bool:
    return isinstance(item, dict) and "segment_id" in item and "transcript" in item


def _legacy_items(data: Any) -> Optional[List[Dict[str, Any]]]:
    """Return the legacy segment objects in ``data``, or None if it is not legacy-shaped."""
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and "metadata" in data and isinstance(data.get("segments"), list):
        items = data["segments"]
    elif _is_legacy_segment(data):
        items = [data]
    else:
        return None

    if all(_is_legacy_segment(item) for item in items):
        return items
    return None


def detect_format(data: Any) -> str:
    """Decide which source shape a decoded JSON document uses.

    Args:
        data: The decoded JSON value.

    Returns:
        RAW_SHAPE or LEGACY_SHAPE.

    Raises:
        UnrecognizedFormatError: If the document matches neither shape.
    """
    if _is_raw_response(data):
        return RAW_SHAPE
    if _legacy_items(data) is not None:
        return LEGACY_SHAPE
    raise UnrecognizedFormatError(
        "Unrecognized transcript structure: expected a raw ASR response with "
        "'results.channels' or 'results.utterances', or a list of segments "
        "with 'segment_id' and 'transcript'"
    )


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _number(value: Any, name: str, where: str, default: Optional[float] = None) -> Optional[float]:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UnrecognizedFormatError(
            "{}: '{}' must be a number, got {!r}".format(where, name, value)
        )
    number = _finite(value)
    if number is None:
        raise UnrecognizedFormatError(
            "{}: '{}' must be a finite number, got {!r}".format(where, name, value)
        )
    return number


def _optional_number(value: Any) -> Optional[float]:
    """Lenient read for scores and durations: anything but a finite number is None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return _finite(value)


def _speaker(value: Any, where: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise UnrecognizedFormatError("{}: invalid speaker {!r}".format(where, value))
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise UnrecognizedFormatError("{}: invalid speaker {!r}".format(where, value))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None and str(v).strip()]
    text = str(value).strip()
    return [text] if text else []


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _time_span(start: Any, end: Any, where: str, start_key: str, end_key: str) -> tuple:
    start_time = _number(start, start_key, where, default=0.0)
    end_time = _number(end, end_key, where, default=start_time)
    if start_time < 0:
        raise UnrecognizedFormatError("{}: '{}' must not be negative".format(where, start_key))
    return start_time, max(end_time, start_time)


# ---------------------------------------------------------------------------
# Raw shape
# ---------------------------------------------------------------------------


def _first_alternative(results: Dict[str, Any]) -> Dict[str, Any]:
    channels = results.get("channels")
    if not isinstance(channels, list) or not channels or not isinstance(channels[0], dict):
        return {}
    alternatives = channels[0].get("alternatives")
    if not isinstance(alternatives, list) or not alternatives or not isinstance(alternatives[0], dict):
        return {}
    return alternatives[0]


def _raw_topics(results: Dict[str, Any]) -> List[Topic]:
    """Collect topics from either the flat list or the per-segment block."""
    topics_data = results.get("topics")
    entries: List[Dict[str, Any]] = []
    if isinstance(topics_data, list):
        entries = [t for t in topics_data if isinstance(t, dict)]
    elif isinstance(topics_data, dict) and isinstance(topics_data.get("segments"), list):
        for seg in topics_data["segments"]:
            if isinstance(seg, dict) and isinstance(seg.get("topics"), list):
                entries.extend(t for t in seg["topics"] if isinstance(t, dict))

    topics: List[Topic] = []
    seen = set()
    for entry in entries:
        name = _text(entry.get("topic"))
        if not name or name in seen:
            continue
        seen.add(name)
        confidence = _optional_number(entry.get("confidence", entry.get("confidence_score")))
        topics.append(Topic(name=name, confidence=confidence))
    return topics


def _raw_summary(results: Dict[str, Any]) -> Optional[str]:
    summary = results.get("summary")
    if isinstance(summary, dict):
        return _optional_text(summary.get("short") or summary.get("result"))
    if isinstance(summary, str):
        return _optional_text(summary)
    return None


def _raw_intents(results: Dict[str, Any]) -> List[str]:
    intents = results.get("intents")
    labels: List[str] = []
    if isinstance(intents, list):
        labels = [_text(i.get("intent")) for i in intents if isinstance(i, dict)]
    elif isinstance(intents, dict):
        if isinstance(intents.get("segments"), list):
            for seg in intents["segments"]:
                if isinstance(seg, dict) and isinstance(seg.get("intents"), list):
                    labels.extend(_text(i.get("intent")) for i in seg["intents"] if isinstance(i, dict))
        elif intents.get("intent"):
            labels = [_text(intents["intent"])]
    return _unique(labels)


def _raw_sentiment(results: Dict[str, Any]) -> Optional[str]:
    sentiments = results.get("sentiments")
    if isinstance(sentiments, list):
        candidates = [s for s in sentiments if isinstance(s, dict) and s.get("sentiment")]
        if not candidates:
            return None
        best = max(candidates, key=lambda s: s.get("confidence") or 0)
        return _optional_text(best["sentiment"])
    if isinstance(sentiments, dict):
        average = sentiments.get("average")
        if isinstance(average, dict) and average.get("sentiment"):
            return _optional_text(average["sentiment"])
        return _optional_text(sentiments.get("sentiment"))
    return None


def _raw_metadata(data: Dict[str, Any]) -> DocumentMetadata:
    results = data["results"]
    header = data.get("metadata")
    duration = None
    if isinstance(header, dict):
        duration = _optional_number(header.get("duration"))
    return DocumentMetadata(
        topics=_raw_topics(results),
        summary=_raw_summary(results),
        intents=_raw_intents(results),
        sentiment=_raw_sentiment(results),
        duration=duration,
    )


def _segments_from_utterances(utterances: List[Any]) -> List[Segment]:
    segments = []
    for index, utterance in enumerate(utterances):
        where = "utterance {}".format(index)
        if not isinstance(utterance, dict):
            raise UnrecognizedFormatError("{}: expected an object".format(where))
        start, end = _time_span(utterance.get("start"), utterance.get("end"), where, "start", "end")
        segments.append(Segment(
            start_time=start,
            end_time=end,
            text=_text(utterance.get("transcript")),
            speaker=_speaker(utterance.get("speaker"), where),
            confidence=_number(utterance.get("confidence"), "confidence", where),
            segment_id="utterance_{}".format(index),
        ))
    return segments


def _segment_from_words(words: List[Dict[str, Any]], segment_id: str, speaker: Optional[int]) -> Segment:
    """Build one Segment from a run of word dicts; confidence is the word average."""
    start, _ = _time_span(words[0].get("start"), words[0].get("end"), segment_id, "start", "end")
    _, end = _time_span(words[-1].get("start"), words[-1].get("end"), segment_id, "start", "end")
    tokens = (_text(w.get("punctuated_word") or w.get("word")) for w in words)
    confidences = [c for c in (_optional_number(w.get("confidence")) for w in words) if c is not None]
    return Segment(
        start_time=start,
        end_time=max(end, start),
        text=" ".join(t for t in tokens if t),
        speaker=speaker,
        confidence=sum(confidences) / len(confidences) if confidences else None,
        segment_id=segment_id,
    )


def _segments_from_words(words: List[Dict[str, Any]]) -> List[Segment]:
    """Group channel words into segments: by speaker turn, else fixed-size chunks."""
    if any(w.get("speaker") is not None for w in words):
        segments: List[Segment] = []
        run: List[Dict[str, Any]] = []
        run_speaker: Optional[int] = None
        for index, word in enumerate(words):
            speaker = _speaker(word.get("speaker"), "word {}".format(index))
            if run and speaker != run_speaker:
                segment_id = "speaker_{}_{}".format(run_speaker, len(segments))
                segments.append(_segment_from_words(run, segment_id, run_speaker))
                run = []
            if not run:
                run_speaker = speaker
            run.append(word)
        if run:
            segment_id = "speaker_{}_{}".format(run_speaker, len(segments))
            segments.append(_segment_from_words(run, segment_id, run_speaker))
        return segments

    return [
        _segment_from_words(words[i:i + WORD_CHUNK_SIZE], "chunk_{}".format(i // WORD_CHUNK_SIZE), None)
        for i in range(0, len(words), WORD_CHUNK_SIZE)
    ]


def _normalize_raw(data: Dict[str, Any]) -> tuple:
    results = data["results"]
    metadata = _raw_metadata(data)
    alternative = _first_alternative(results)

    utterances = results.get("utterances")
    words = alternative.get("words")
    transcript_text = _text(alternative.get("transcript"))

    if isinstance(utterances, list) and utterances:
        segments = _segments_from_utterances(utterances)
    elif isinstance(words, list) and words:
        if not all(isinstance(w, dict) for w in words):
            raise UnrecognizedFormatError("results.channels[0].alternatives[0].words must hold objects")
        logger.debug("No utterances in raw response; grouping %d words", len(words))
        segments = _segments_from_words(words)
    elif transcript_text:
        logger.debug("No utterances or words in raw response; using channel transcript")
        segments = [Segment(
            start_time=0.0,
            end_time=metadata.duration or 0.0,
            text=transcript_text,
            confidence=_number(alternative.get("confidence"), "confidence", "alternative 0"),
            segment_id="transcript_0",
        )]
    else:
        segments = []

    # Stable sort keeps utterance order for equal start times.
    segments.sort(key=lambda s: s.start_time)
    return segments, metadata


# ---------------------------------------------------------------------------
# Legacy shape
# ---------------------------------------------------------------------------


def _legacy_segment(item: Dict[str, Any], index: int) -> Segment:
    where = "segment {}".format(index)
    start, end = _time_span(item.get("start_time"), item.get("end_time"), where, "start_time", "end_time")
    ai_analysis = None
    for key in _AI_ANALYSIS_KEYS:
        ai_analysis = _optional_text(item.get(key))
        if ai_analysis:
            break
    segment_id = item.get("segment_id")
    return Segment(
        start_time=start,
        end_time=end,
        text=_text(item.get("transcript")),
        speaker=_speaker(item.get("speaker"), where),
        confidence=_number(item.get("confidence"), "confidence", where),
        segment_id=str(segment_id) if segment_id is not None else None,
        topic=_optional_text(item.get("topic")),
        keywords=_string_list(item.get("keywords")),
        ai_analysis=ai_analysis,
        software_detected=_optional_text(item.get("software_detected")),
        software_detections=_string_list(item.get("software_detections")),
    )


def _envelope_metadata(envelope: Dict[str, Any]) -> Optional[DocumentMetadata]:
    """Restore metadata written by the JSON export, if the envelope carries any."""
    meta = envelope.get("metadata")
    if not isinstance(meta, dict):
        return None
    topics = []
    for entry in meta.get("topics") or []:
        if isinstance(entry, dict) and _text(entry.get("name")):
            confidence = _optional_number(entry.get("confidence"))
            topics.append(Topic(name=_text(entry["name"]), confidence=confidence))
        elif isinstance(entry, str) and entry.strip():
            topics.append(Topic(name=entry.strip()))
    return DocumentMetadata(
        topics=topics,
        summary=_optional_text(meta.get("summary")),
        intents=_unique(_string_list(meta.get("intents"))),
        sentiment=_optional_text(meta.get("sentiment")),
        duration=_number(meta.get("duration"), "duration", "metadata"),
    )


def _normalize_legacy(data: Any) -> tuple:
    items = _legacy_items(data)
    segments = [_legacy_segment(item, index) for index, item in enumerate(items)]

    metadata = _envelope_metadata(data) if isinstance(data, dict) else None
    if metadata is None:
        metadata = DocumentMetadata()
    if not metadata.topics:
        metadata.topics = [Topic(name=name) for name in _unique(s.topic for s in segments)]
    if metadata.summary is None:
        for item in items:
            summary = _optional_text(item.get("summary"))
            if summary:
                metadata.summary = summary
                break
    return segments, metadata


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize(data: Any, source_filename: str = "") -> Transcript:
    """Project a decoded JSON document into the Transcript IR.

    WHY: This is the single boundary where source shape matters. After
    this call, downstream code only ever sees Segment and DocumentMetadata.

    HOW: detect_format() picks the projection; each projection returns
    (segments, metadata) and the result is wrapped in a Transcript.

    Args:
        data: Decoded JSON (dict or list).
        source_filename: Name of the originating file, for output naming.

    Returns:
        The normalized Transcript.

    Raises:
        UnrecognizedFormatError: If the structure matches neither shape or
            carries values of the wrong type (e.g. a non-numeric time).
    """
    shape = detect_format(data)
    if shape == RAW_SHAPE:
        segments, metadata = _normalize_raw(data)
    else:
        segments, metadata = _normalize_legacy(data)
    logger.debug("Normalized %s document: %d segments", shape, len(segments))
    return Transcript(
        segments=segments,
        metadata=metadata,
        source_format=shape,
        source_filename=source_filename,
    )


def _reject_constant(token: str) -> Any:
    raise ValueError("non-standard JSON constant {}".format(token))


def load_json(path: Union[str, Path]) -> Any:
    """Read and decode a UTF-8 JSON file.

    NaN and Infinity literals are rejected; JSON itself has no such values.

    Raises:
        InputNotFoundError: If the path does not exist or is not a file.
        InvalidInputError: If the file is not UTF-8 or not valid JSON.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise InputNotFoundError(str(path))
    try:
        return json.loads(file_path.read_text(encoding="utf-8"), parse_constant=_reject_constant)
    except UnicodeDecodeError as e:
        raise InvalidInputError("Invalid JSON file (not UTF-8): {}".format(e)) from e
    except ValueError as e:
        raise InvalidInputError("Invalid JSON file: {}".format(e)) from e


def load_transcript(path: Union[str, Path]) -> Transcript:
    """Read a transcript file of either shape and normalize it.

    Args:
        path: Path to a raw ASR response or a legacy segment file.

    Returns:
        The normalized Transcript, with source_filename set to the file name.

    Raises:
        InputNotFoundError, InvalidInputError, UnrecognizedFormatError
    """
    data = load_json(path)
    return normalize(data, source_filename=Path(path).name)
