"""Transcript Converter: ASR transcript normalization and export hub.

WHY: The ASR service has produced two incompatible JSON shapes over its
lifetime: the raw nested response (channels, alternatives, utterances)
and a legacy flat list of analyst-enriched segments. Downstream tools
(subtitle players, docs, analysis scripts) should not care which shape
a file uses.

HOW: Three-stage pipeline. Normalize (detect shape, project into the
canonical IR), inspect (field catalog and query engine), and format
(pluggable formatters, with an optional speaker-diarization merge pass
for subtitles). Each stage is independently testable.

RULES:
- All formatters consume the same Transcript IR
- Shape-specific knowledge lives only in core/normalizer.py
- Adding a new output format = one new formatter module, no core changes
- The core never touches the network and keeps no state between calls
"""

__version__ = "0.1.0"
