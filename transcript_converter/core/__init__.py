"""Core normalization, catalog, query, and diarization modules.

WHY: The core package is the stable heart of the converter: the IR
dataclasses, the one module that understands source shapes, and the
shape-independent logic every formatter and report relies on.

HOW: ir.py defines the data structures, normalizer.py builds them from
either JSON shape, fields.py and query.py inspect them, diarization.py
merges same-speaker segments for subtitle output.

RULES:
- IR dataclasses are the contract; change with care
- Only normalizer.py may look at raw or legacy JSON structure
- Nothing in core performs I/O except normalizer.load_json()
"""
