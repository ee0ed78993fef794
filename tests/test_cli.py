"""Tests for the command-line interface.

WHY: The CLI is the only layer that writes files and maps errors to exit
codes. Automated callers depend on both: a stable output name and a
distinct exit code per failure kind.

HOW: Call main(argv) directly with files in tmp_path, capture stdout and
stderr with capsys, and inspect the files written. Every test runs with
tmp_path as the working directory so no real configuration is picked up.
"""

import json

import pytest

from transcript_converter.cli import _resolve_output_path, build_parser, main


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("transcript_converter.config.DEFAULT_CONFIG_PATH", str(tmp_path / "none.yml"))


class TestParser:
    def test_convert_defaults(self):
        args = build_parser().parse_args(["convert", "in.json"])
        assert args.format == "srt"
        assert args.output is None
        assert args.stdout is False
        assert args.verbose is False

    def test_format_is_lowercased(self):
        args = build_parser().parse_args(["convert", "in.json", "--format", "JSON"])
        assert args.format == "json"

    def test_output_and_stdout_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["convert", "in.json", "--output", "x.srt", "--stdout"])

    def test_analyze_options(self):
        args = build_parser().parse_args([
            "analyze", "in.json", "--fields", "Speaker", "Segment Transcript",
            "--speaker", "1", "--export", "CSV",
        ])
        assert args.fields == ["Speaker", "Segment Transcript"]
        assert args.speaker == 1
        assert args.export == "csv"

    @pytest.mark.parametrize("value", ["0", "-1", "two"])
    def test_speaker_number_must_be_positive(self, value):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["analyze", "in.json", "--speaker", value])

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestResolveOutputPath:
    def test_free_name(self, tmp_path):
        assert _resolve_output_path("talk", ".srt", tmp_path) == tmp_path / "talk.srt"

    def test_conflict_adds_counter(self, tmp_path):
        (tmp_path / "talk_converted.json").write_text("{}")
        (tmp_path / "talk_converted-2.json").write_text("{}")
        assert _resolve_output_path("talk", "_converted.json", tmp_path) == tmp_path / "talk_converted-3.json"

    def test_conflict_with_bare_extension(self, tmp_path):
        (tmp_path / "talk.srt").write_text("")
        assert _resolve_output_path("talk", ".srt", tmp_path) == tmp_path / "talk-2.srt"


class TestConvert:
    def test_writes_srt_next_to_input(self, write_json, raw_response, tmp_path):
        path = write_json(raw_response, name="interview.json")
        assert main(["convert", str(path)]) == 0
        content = (tmp_path / "interview.srt").read_text(encoding="utf-8")
        assert content.startswith("1\n00:00:00,500 --> 00:00:02,000\n")

    def test_stdout(self, write_json, legacy_segments, capsys):
        path = write_json(legacy_segments)
        assert main(["convert", str(path), "--format", "md", "--stdout"]) == 0
        assert capsys.readouterr().out.startswith("# Transcript\n")

    def test_explicit_output_does_not_overwrite(self, write_json, legacy_segments, tmp_path):
        path = write_json(legacy_segments)
        target = tmp_path / "out.json"
        target.write_text("keep me")
        assert main(["convert", str(path), "--format", "json", "--output", str(target)]) == 0
        assert target.read_text() == "keep me"
        data = json.loads((tmp_path / "out-2.json").read_text(encoding="utf-8"))
        assert len(data["segments"]) == 2

    def test_summary_suffix(self, write_json, legacy_segments, tmp_path):
        path = write_json(legacy_segments, name="meeting.json")
        assert main(["convert", str(path), "--format", "summary"]) == 0
        assert (tmp_path / "meeting_summary.txt").exists()

    def test_config_enables_speaker_labels(self, write_json, raw_response, tmp_path, capsys):
        config = tmp_path / "speakers.yml"
        config.write_text("speaker_diarization:\n  enable: true\n", encoding="utf-8")
        path = write_json(raw_response)
        assert main(["convert", str(path), "--stdout", "--config", str(config)]) == 0
        out = capsys.readouterr().out
        assert "[Speaker 1]: How are you doing today?" in out
        assert "[Speaker 2]: I am fantastic, thank you." in out

    def test_invalid_config_still_converts(self, write_json, raw_response, tmp_path, capsys):
        config = tmp_path / "speakers.yml"
        config.write_text("speaker_diarization:\n  enable: true\n  max_speakers: 0\n", encoding="utf-8")
        path = write_json(raw_response)
        assert main(["convert", str(path), "--stdout", "--config", str(config)]) == 0
        out = capsys.readouterr().out
        assert "[Speaker" not in out
        assert "How are you doing today?" in out


class TestExitCodes:
    def test_missing_file(self, tmp_path, capsys):
        assert main(["convert", str(tmp_path / "nope.json")]) == 2
        assert capsys.readouterr().err.startswith("Error: File not found")

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        assert main(["convert", str(path)]) == 3
        assert "Invalid JSON file" in capsys.readouterr().err

    def test_unrecognized_shape(self, write_json):
        path = write_json({"hello": "world"})
        assert main(["convert", str(path)]) == 4

    def test_unsupported_format_writes_nothing(self, write_json, legacy_segments, tmp_path, capsys):
        path = write_json(legacy_segments, name="meeting.json")
        assert main(["convert", str(path), "--format", "xml"]) == 5
        assert "Unsupported format 'xml'" in capsys.readouterr().err
        assert sorted(p.name for p in tmp_path.iterdir()) == ["meeting.json"]

    def test_unsupported_analysis_export(self, write_json, legacy_segments):
        path = write_json(legacy_segments)
        assert main(["analyze", str(path), "--export", "xlsx"]) == 5


class TestAnalyze:
    def test_overview(self, write_json, legacy_segments, capsys):
        path = write_json(legacy_segments, name="meeting.json")
        assert main(["analyze", str(path)]) == 0
        out = capsys.readouterr().out
        assert "File: meeting.json (legacy format)" in out
        assert "Topics: Greeting, Programming" in out
        assert "Segment 2" in out

    def test_topic_filter_with_stdout_export(self, write_json, legacy_segments, capsys):
        path = write_json(legacy_segments)
        argv = [
            "analyze", str(path), "--topic", "Programming",
            "--fields", "Segment Identifier", "--export", "json", "--stdout",
        ]
        assert main(argv) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["rows"] == [{"Segment Identifier": "seg_2"}]

    @pytest.mark.parametrize("number", ["1", "2"])
    def test_speaker_number_matches_overview(self, write_json, raw_response, capsys, number):
        path = write_json(raw_response)
        assert main(["analyze", str(path), "--speaker", number]) == 0
        out = capsys.readouterr().out
        assert "Segments: 2 (1 matching)" in out
        assert "Speakers: 1" in out
        assert "Speaker {}: 1 segments".format(number) in out

    def test_export_saved_next_to_input(self, write_json, legacy_segments, tmp_path):
        path = write_json(legacy_segments, name="meeting.json")
        assert main(["analyze", str(path), "--export", "csv"]) == 0
        lines = (tmp_path / "meeting_analysis.csv").read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("Segment Identifier,")
        assert len(lines) == 3


class TestFields:
    def test_marks_fields_with_data(self, write_json, raw_response, capsys):
        path = write_json(raw_response)
        assert main(["fields", str(path)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert len(out) == 13
        assert "[x] Speaker" in out
        assert "[ ] Segment Topic" in out
