"""Canonical JSON export formatter.

WHY: Scripts and later runs of this tool need the normalized transcript
in a machine-readable form that loads straight back through the
normalizer. Writing legacy-style segment objects inside a small envelope
gives exactly that round trip.

HOW: Each Segment becomes a legacy-shaped object (segment_id,
start_time, end_time, transcript, plus whichever optional fields are
set). Metadata goes under "metadata". The document is validated with
jsonschema before it is serialized with sorted keys.

RULES:
- Envelope: {"metadata": {...}, "segments": [...]}
- segment_id and transcript are always present (the legacy discriminators)
- Optional segment keys are omitted when empty, never written as null
- Keys are sorted and indentation is fixed, so output is byte-stable
- Validate output against transcript_export.schema.json; raise on failure
- Output suffix: "_converted.json"; media type "application/json"
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from transcript_converter.core.ir import DocumentMetadata, Segment, Transcript
from transcript_converter.formatters.base import BaseFormatter, FormatterOutput

_SCHEMA_PATH = Path(__file__).resolve().parent / "transcript_export.schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    """Load the export schema once per process."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def segment_to_dict(segment: Segment) -> Dict[str, Any]:
    """Serialize one Segment as a legacy-shaped segment object."""
    data: Dict[str, Any] = {
        "segment_id": segment.segment_id,
        "start_time": segment.start_time,
        "end_time": segment.end_time,
        "transcript": segment.text,
    }
    optional = {
        "speaker": segment.speaker,
        "confidence": segment.confidence,
        "topic": segment.topic,
        "keywords": list(segment.keywords),
        "ai_analysis": segment.ai_analysis,
        "software_detected": segment.software_detected,
        "software_detections": list(segment.software_detections),
    }
    for key, value in optional.items():
        if value is None or value == []:
            continue
        data[key] = value
    return data


def metadata_to_dict(metadata: DocumentMetadata, transcript: Transcript) -> Dict[str, Any]:
    return {
        "source_format": transcript.source_format,
        "source_filename": transcript.source_filename,
        "topics": [
            {"name": topic.name, "confidence": topic.confidence}
            for topic in metadata.topics
        ],
        "summary": metadata.summary,
        "intents": list(metadata.intents),
        "sentiment": metadata.sentiment,
        "duration": metadata.duration,
    }


def transcript_to_dict(transcript: Transcript) -> Dict[str, Any]:
    """Build the export document (validated by JSONFormatter, not here)."""
    return {
        "metadata": metadata_to_dict(transcript.metadata, transcript),
        "segments": [segment_to_dict(s) for s in transcript.segments],
    }


class JSONFormatter(BaseFormatter):
    """Formatter that writes the normalized transcript as JSON."""

    @property
    def name(self) -> str:
        return "JSON"

    def format(self, transcript: Transcript, speaker_options: Any = None) -> List[FormatterOutput]:
        """Serialize the transcript.

        Raises:
            jsonschema.ValidationError: If the generated document does not
                conform to the export schema.
        """
        output = transcript_to_dict(transcript)
        jsonschema.validate(instance=output, schema=_get_schema())

        content = json.dumps(output, indent=2, ensure_ascii=False, sort_keys=True, allow_nan=False) + "\n"
        return [
            FormatterOutput(
                suffix="_converted.json",
                content=content,
                media_type="application/json",
            )
        ]
