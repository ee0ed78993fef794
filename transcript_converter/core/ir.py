"""Canonical intermediate representation for normalized transcripts.

WHY: The ASR service emits two incompatible JSON shapes: a raw nested
response and a legacy list of enriched segments. The field catalog, query
engine and every formatter need one well-typed form so that none of them
ever branches on the source shape again.

HOW: Four dataclasses form a hierarchy:
  Segment            one transcript unit (time span, speaker, text, enrichment)
  Topic              a document-level topic with optional confidence
  DocumentMetadata   document-level data (topics, summary, intents, ...)
  Transcript         segments + metadata + provenance, built by the normalizer

RULES:
- All times are float seconds; end_time >= start_time
- text may be empty but is never None
- speaker/confidence are None when the source never recorded them
- Enrichment fields (topic, keywords, ai_analysis, software_*) are only set
  for legacy-shaped sources
- List fields are never shared between instances (default_factory)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

RAW_SHAPE = "raw"
LEGACY_SHAPE = "legacy"


@dataclass
class Segment:
    """One transcript unit projected from either source shape.

    RULES:
    - start_time / end_time: non-negative float seconds, end >= start
    - text: stripped transcript string, "" when the source had none
    - speaker: integer speaker id (0-based, as the ASR service numbers them)
    - confidence: float in [0, 1] or None
    - segment_id: source identifier ("utterance_0", "seg_1", ...) or None
    """

    start_time: float
    end_time: float
    text: str = ""
    speaker: Optional[int] = None
    confidence: Optional[float] = None
    segment_id: Optional[str] = None
    topic: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    ai_analysis: Optional[str] = None
    software_detected: Optional[str] = None
    software_detections: List[str] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass
class Topic:
    """A document-level topic. confidence is None for legacy sources."""

    name: str
    confidence: Optional[float] = None


@dataclass
class DocumentMetadata:
    """Document-level data that does not belong to any single segment.

    RULES:
    - topics: distinct by name, in first-seen order
    - summary: short synopsis or None when the source had none
    - intents: distinct intent labels (raw shape only)
    - sentiment: dominant sentiment label (raw shape only)
    - duration: audio duration in seconds from the raw response header
    """

    topics: List[Topic] = field(default_factory=list)
    summary: Optional[str] = None
    intents: List[str] = field(default_factory=list)
    sentiment: Optional[str] = None
    duration: Optional[float] = None

    @property
    def topic_names(self) -> List[str]:
        return [t.name for t in self.topics]


@dataclass
class Transcript:
    """A fully normalized document, ready for querying and formatting.

    RULES:
    - segments: ordered by non-decreasing start_time for raw sources,
      input order for legacy sources
    - source_format: RAW_SHAPE or LEGACY_SHAPE
    - source_filename: input file name, "" when normalized from memory
    """

    segments: List[Segment]
    metadata: DocumentMetadata
    source_format: str
    source_filename: str = ""
