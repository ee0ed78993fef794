"""Shared test fixtures for the transcript_converter test suite.

WHY: Every test module needs the same two reference documents: a legacy
segment list carrying analyst enrichment, and a raw ASR response with
speaker-tagged utterances. Centralizing them keeps the expected values in
one place.

HOW: Plain dict builders wrapped in fixtures, plus helpers that write a
document to tmp_path so the file-level functions can be exercised.

RULES:
- Fixtures return fresh copies; tests may mutate them freely
- The raw sample has two utterances (speakers 0 and 1, confidences
  0.955 and 0.95) separated by a 3-second gap
"""

import copy
import json
from typing import Any, Dict, List

import pytest

from transcript_converter.core.normalizer import normalize

LEGACY_SEGMENTS: List[Dict[str, Any]] = [
    {
        "segment_id": "seg_1",
        "start_time": 0.0,
        "end_time": 4.5,
        "transcript": "Hello everyone. Welcome to the meeting!",
        "topic": "Greeting",
        "keywords": ["hello", "welcome"],
        "software_detections": ["PowerPoint", "Zoom"],
        "summary": "A short team meeting about tooling.",
    },
    {
        "segment_id": "seg_2",
        "start_time": 4.5,
        "end_time": 10.0,
        "transcript": "Today we discuss Ruby and VS Code",
        "topic": "Programming",
        "keywords": ["ruby", "editor"],
        "gemini_analysis": "Speaker introduces the technical agenda.",
        "software_detected": "VS Code",
        "software_detections": ["Ruby", "VS Code"],
    },
]

RAW_RESPONSE: Dict[str, Any] = {
    "metadata": {"request_id": "req-1", "duration": 8.0},
    "results": {
        "channels": [
            {
                "alternatives": [
                    {
                        "transcript": "How are you doing today? I am fantastic, thank you.",
                        "confidence": 0.95,
                        "words": [],
                    }
                ]
            }
        ],
        "utterances": [
            {
                "start": 0.5,
                "end": 2.0,
                "confidence": 0.955,
                "channel": 0,
                "transcript": "How are you doing today?",
                "speaker": 0,
                "id": "u-1",
            },
            {
                "start": 5.0,
                "end": 7.5,
                "confidence": 0.95,
                "channel": 0,
                "transcript": "I am fantastic, thank you.",
                "speaker": 1,
                "id": "u-2",
            },
        ],
        "topics": {
            "segments": [
                {"topics": [{"topic": "Programming", "confidence_score": 0.8}]},
                {"topics": [{"topic": "Ruby", "confidence_score": 0.6}]},
            ]
        },
        "summary": {"result": "success", "short": "Two people exchange greetings."},
    },
}


@pytest.fixture
def legacy_segments():
    """The enriched legacy segment list (two segments)."""
    return copy.deepcopy(LEGACY_SEGMENTS)


@pytest.fixture
def raw_response():
    """A raw ASR response with two utterances from different speakers."""
    return copy.deepcopy(RAW_RESPONSE)


@pytest.fixture
def legacy_transcript(legacy_segments):
    return normalize(legacy_segments, source_filename="meeting.json")


@pytest.fixture
def raw_transcript(raw_response):
    return normalize(raw_response, source_filename="interview.json")


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON document to tmp_path and return its path."""

    def _write(data, name="transcript.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
