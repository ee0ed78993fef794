"""Typed error kinds for the transcript pipeline.

WHY: Automated callers need to branch on *why* a conversion failed: a
missing file, broken JSON, an unknown document shape, or an unknown export
format are different problems with different fixes. A generic exception
would force callers to parse messages.

HOW: One small hierarchy rooted at TranscriptConverterError. Each kind
also derives from the closest builtin (FileNotFoundError, ValueError) so
code that only knows the builtins still catches them. Every class carries
a stable ``kind`` string and the CLI ``exit_code`` used for it.

RULES:
- Raise at the boundary where the problem is detected, never later
- InputNotFoundError, InvalidInputError, UnrecognizedFormatError and
  UnsupportedFormatError are fatal for the current call
- InvalidConfigurationError is recovered by the export path: diarization
  is disabled and the export continues
"""

from __future__ import annotations


class TranscriptConverterError(Exception):
    """Base class for every error raised by the transcript pipeline."""

    kind = "error"
    exit_code = 1


class InputNotFoundError(TranscriptConverterError, FileNotFoundError):
    """Raised when the input path does not exist.

    RULES:
    - ``path`` holds the path exactly as the caller supplied it
    """

    kind = "not_found"
    exit_code = 2

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class InvalidInputError(TranscriptConverterError, ValueError):
    """Raised when the input file is not syntactically valid JSON (or not UTF-8)."""

    kind = "invalid_input"
    exit_code = 3


class UnrecognizedFormatError(TranscriptConverterError, ValueError):
    """Raised when valid JSON matches neither the raw ASR nor the legacy shape."""

    kind = "unrecognized_format"
    exit_code = 4


class UnsupportedFormatError(TranscriptConverterError, ValueError):
    """Raised when a caller requests an export format that is not registered.

    HOW: Carries the requested name and the sorted list of valid names so
    the message is actionable on its own.
    """

    kind = "unsupported_format"
    exit_code = 5

    def __init__(self, requested: str, available: list[str]) -> None:
        self.requested = requested
        self.available = list(available)
        super().__init__(
            "Unsupported format '{}'. Supported formats: {}".format(
                requested, ", ".join(self.available)
            )
        )


class InvalidConfigurationError(TranscriptConverterError, ValueError):
    """Raised when speaker-diarization settings fail validation.

    RULES:
    - ``field`` names the offending setting, e.g. "confidence_threshold"
    - Never fatal for an export; see config.load_diarization_config()
    """

    kind = "invalid_configuration"
    exit_code = 6

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")
