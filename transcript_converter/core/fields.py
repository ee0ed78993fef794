"""Field catalog: display names mapped to accessors over the IR.

WHY: Callers pick fields by human-readable name ("Segment Transcript",
"Speaker") before they know which fields a given document actually fills.
A fixed table of (name, accessor, presence predicate) entries keeps that
lookup in one place instead of string keys scattered through the code.

HOW: FIELD_CATALOG is a tuple of FieldSpec built once at import.
available_fields() lists every name; get_field_options() probes each
entry against the current document and keeps the ones with data.

RULES:
- The catalog is static and format-independent
- "Has data" is recomputed per call; nothing is cached across documents
- Array-valued fields are comma-joined for display only (project_value)
- Metadata-backed fields (Topics, Summary) read DocumentMetadata and
  yield the same value for every segment
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from transcript_converter.core.ir import DocumentMetadata, Segment

SEGMENT_SOURCE = "segment"
METADATA_SOURCE = "metadata"


def has_data(value: Any) -> bool:
    """True when a raw field value is non-nil and non-empty after projection."""
    if value is None:
        return False
    if isinstance(value, (list, tuple)):
        return any(str(v).strip() for v in value if v is not None)
    return bool(str(value).strip())


def project_value(value: Any) -> Any:
    """Display projection: lists become "a, b, c"; scalars pass through unchanged."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


@dataclass(frozen=True)
class FieldSpec:
    """One catalog entry.

    RULES:
    - accessor takes (segment, metadata) and returns the raw value
    - predicate decides whether a raw value counts as data
    """

    name: str
    accessor: Callable[[Segment, DocumentMetadata], Any]
    source: str = SEGMENT_SOURCE
    predicate: Callable[[Any], bool] = has_data

    def raw(self, segment: Segment, metadata: DocumentMetadata) -> Any:
        return self.accessor(segment, metadata)

    def extract(self, segment: Segment, metadata: DocumentMetadata) -> Any:
        return project_value(self.raw(segment, metadata))

    def present(self, segment: Segment, metadata: DocumentMetadata) -> bool:
        return self.predicate(self.raw(segment, metadata))


FIELD_CATALOG = (
    FieldSpec("Segment Identifier", lambda s, m: s.segment_id),
    FieldSpec("Start Time of Segment", lambda s, m: s.start_time),
    FieldSpec("End Time of Segment", lambda s, m: s.end_time),
    FieldSpec("Segment Transcript", lambda s, m: s.text),
    FieldSpec("Speaker", lambda s, m: s.speaker),
    FieldSpec("Confidence Score", lambda s, m: s.confidence),
    FieldSpec("Segment Topic", lambda s, m: s.topic),
    FieldSpec("Relevant Keywords", lambda s, m: s.keywords),
    FieldSpec("AI Analysis of Segment", lambda s, m: s.ai_analysis),
    FieldSpec("Software Detected in Segment", lambda s, m: s.software_detected),
    FieldSpec("List of Software Detections", lambda s, m: s.software_detections),
    FieldSpec("Topics", lambda s, m: m.topic_names, source=METADATA_SOURCE),
    FieldSpec("Summary", lambda s, m: m.summary, source=METADATA_SOURCE),
)

_BY_NAME = {spec.name: spec for spec in FIELD_CATALOG}


def available_fields() -> List[str]:
    """Every display name in the catalog, in catalog order."""
    return [spec.name for spec in FIELD_CATALOG]


def get_field(name: str) -> Optional[FieldSpec]:
    """Look up a catalog entry by display name; None for unknown names."""
    return _BY_NAME.get(name)


def get_field_options(
    segments: Sequence[Segment],
    metadata: Optional[DocumentMetadata] = None,
) -> List[str]:
    """Display names whose accessor yields data for at least one segment.

    Args:
        segments: The normalized segments of one document.
        metadata: That document's metadata (empty metadata if None).

    Returns:
        A catalog-ordered subset of available_fields().
    """
    meta = metadata if metadata is not None else DocumentMetadata()
    return [
        spec.name for spec in FIELD_CATALOG
        if any(spec.present(segment, meta) for segment in segments)
    ]
