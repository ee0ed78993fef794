"""Configuration defaults, .env loading, and speaker-diarization settings.

WHY: Centralizes configurable values so they are easy to find and
override, and keeps the on-disk YAML configuration (which may be missing,
disabled, or wrong) from ever breaking an export.

HOW: python-dotenv loads the .env file on import. Defaults are
module-level constants overridable through environment variables.
load_diarization_config() reads the ``speaker_diarization`` block of the
YAML file with PyYAML and validates it through DiarizationConfig.

RULES:
- TRANSCRIPT_CONVERTER_CONFIG points at the YAML file
  (default: config/transcript_converter.yml relative to the CWD)
- A missing file, missing block, enable: false, YAML syntax errors and
  validation failures all return None (diarization disabled)
- Every reason for returning None is logged and reported via on_status
- Never raises for configuration problems
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from dotenv import load_dotenv

from transcript_converter.core.diarization import DiarizationConfig
from transcript_converter.errors import InvalidConfigurationError

# Load .env from the project root (where the script is run from)
load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_PATH = os.getenv(
    "TRANSCRIPT_CONVERTER_CONFIG", os.path.join("config", "transcript_converter.yml")
)
DEFAULT_EXPORT_FORMAT = os.getenv("DEFAULT_EXPORT_FORMAT", "srt").lower()

SPEAKER_DIARIZATION_KEY = "speaker_diarization"


def _report(message: str, on_status: Optional[Callable[[str], None]], level: int) -> None:
    logger.log(level, message)
    if on_status is not None:
        on_status(message)


def load_config_file(path: Union[str, Path]) -> Any:
    """Parse a YAML configuration file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_diarization_config(
    path: Optional[Union[str, Path]] = None,
    on_status: Optional[Callable[[str], None]] = None,
) -> Optional[DiarizationConfig]:
    """Load and validate the speaker_diarization block of the YAML config.

    WHY: Speaker labels are an optional nicety. Any problem with the
    configuration must degrade to plain subtitles, not a failed export.

    HOW: Read the file, pull the ``speaker_diarization`` mapping, return
    None unless ``enable`` is truthy, then validate every setting.

    Args:
        path: YAML file path; DEFAULT_CONFIG_PATH when None.
        on_status: Optional callback receiving human-readable messages.

    Returns:
        An enabled DiarizationConfig, or None when diarization is off.
    """
    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_PATH)

    if not config_path.is_file():
        _report(
            "Configuration file not found: {}. Speaker diarization disabled.".format(config_path),
            on_status, logging.DEBUG,
        )
        return None

    try:
        document = load_config_file(config_path)
    except yaml.YAMLError as e:
        _report(
            "Invalid YAML syntax in {}: {}. Speaker diarization disabled.".format(config_path, e),
            on_status, logging.WARNING,
        )
        return None
    except OSError as e:
        _report(
            "Failed to read {}: {}. Speaker diarization disabled.".format(config_path, e),
            on_status, logging.WARNING,
        )
        return None

    block = document.get(SPEAKER_DIARIZATION_KEY) if isinstance(document, dict) else None
    if not isinstance(block, dict) or not block.get("enable"):
        _report("Speaker diarization not enabled in {}".format(config_path), on_status, logging.DEBUG)
        return None

    try:
        config = DiarizationConfig.from_dict(block)
    except InvalidConfigurationError as e:
        _report(
            "Invalid speaker configuration ({}). Speaker diarization disabled.".format(e),
            on_status, logging.WARNING,
        )
        return None

    _report(
        "Speaker diarization enabled (confidence threshold {:.2f})".format(config.confidence_threshold),
        on_status, logging.DEBUG,
    )
    return config
