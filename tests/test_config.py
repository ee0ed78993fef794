"""Unit tests for YAML configuration loading.

WHY: The speaker_diarization block comes from a user-edited file. Every
way it can be missing or wrong must end in "diarization disabled", never
in a failed conversion.

HOW: Write YAML files into tmp_path and call load_diarization_config()
with an explicit path, collecting on_status messages.
"""

import textwrap

from transcript_converter.config import load_config_file, load_diarization_config
from transcript_converter.core.diarization import DiarizationConfig


def _write_yaml(tmp_path, body):
    path = tmp_path / "transcript_converter.yml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


class TestLoadDiarizationConfig:
    def test_enabled_block(self, tmp_path):
        path = _write_yaml(tmp_path, """
            speaker_diarization:
              enable: true
              confidence_threshold: 0.9
              label_format: "Speaker %d: "
              merge_consecutive_segments: false
              min_segment_duration: 0.5
              max_speakers: 4
        """)
        config = load_diarization_config(path)
        assert config == DiarizationConfig(
            enable=True,
            confidence_threshold=0.9,
            label_format="Speaker %d: ",
            merge_consecutive_segments=False,
            min_segment_duration=0.5,
            max_speakers=4,
        )

    def test_missing_file(self, tmp_path):
        messages = []
        assert load_diarization_config(tmp_path / "absent.yml", on_status=messages.append) is None
        assert "not found" in messages[0]

    def test_disabled_block(self, tmp_path):
        path = _write_yaml(tmp_path, """
            speaker_diarization:
              enable: false
              max_speakers: 0
        """)
        assert load_diarization_config(path) is None

    def test_missing_block(self, tmp_path):
        path = _write_yaml(tmp_path, """
            other_section:
              value: 1
        """)
        assert load_diarization_config(path) is None

    def test_empty_file(self, tmp_path):
        path = _write_yaml(tmp_path, "")
        assert load_diarization_config(path) is None

    def test_invalid_yaml(self, tmp_path):
        path = _write_yaml(tmp_path, """
            speaker_diarization: [unclosed
        """)
        messages = []
        assert load_diarization_config(path, on_status=messages.append) is None
        assert "Invalid YAML" in messages[0]

    def test_invalid_setting_is_reported(self, tmp_path):
        path = _write_yaml(tmp_path, """
            speaker_diarization:
              enable: true
              label_format: "no placeholder"
        """)
        messages = []
        assert load_diarization_config(path, on_status=messages.append) is None
        assert "label_format" in messages[0]

    def test_default_path_from_module(self, tmp_path, monkeypatch):
        path = _write_yaml(tmp_path, """
            speaker_diarization:
              enable: true
        """)
        monkeypatch.setattr("transcript_converter.config.DEFAULT_CONFIG_PATH", str(path))
        config = load_diarization_config()
        assert config is not None
        assert config.enable is True


class TestLoadConfigFile:
    def test_parses_mapping(self, tmp_path):
        path = _write_yaml(tmp_path, """
            speaker_diarization:
              enable: true
        """)
        assert load_config_file(path) == {"speaker_diarization": {"enable": True}}
