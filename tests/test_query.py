"""Unit tests for extraction, filtering and statistics.

WHY: The analyze command and the analysis report are built entirely on
these functions. Filters must keep order and identity; extraction must
produce one row per segment even when some fields are empty or broken.

HOW: Run each query against the conftest documents and small hand-built
segment lists with known counts.
"""

import pytest

from transcript_converter.core import fields as fields_module
from transcript_converter.core.fields import FieldSpec
from transcript_converter.core.ir import DocumentMetadata, Segment
from transcript_converter.core.query import (
    count_sentences,
    count_words,
    extract_fields,
    filter_by_software,
    filter_by_speaker,
    filter_by_topic,
    get_all_software,
    get_all_speakers,
    get_all_topics,
    has_ai_analysis,
    has_software_detection,
    speaker_statistics,
    summary_stats,
    text_stats,
    total_duration,
)


class TestExtractFields:
    def test_one_row_per_segment(self, legacy_transcript):
        rows = extract_fields(
            legacy_transcript.segments,
            legacy_transcript.metadata,
            ["Segment Transcript", "List of Software Detections"],
        )
        assert rows == [
            {
                "Segment Transcript": "Hello everyone. Welcome to the meeting!",
                "List of Software Detections": "PowerPoint, Zoom",
            },
            {
                "Segment Transcript": "Today we discuss Ruby and VS Code",
                "List of Software Detections": "Ruby, VS Code",
            },
        ]

    def test_metadata_fields_repeat(self, legacy_transcript):
        rows = extract_fields(legacy_transcript.segments, legacy_transcript.metadata, ["Topics", "Summary"])
        assert rows[0] == rows[1]
        assert rows[0]["Topics"] == "Greeting, Programming"

    def test_scalars_keep_type(self, raw_transcript):
        rows = extract_fields(raw_transcript.segments, raw_transcript.metadata, ["Start Time of Segment", "Speaker"])
        assert rows[0]["Start Time of Segment"] == 0.5
        assert rows[1]["Speaker"] == 1

    def test_empty_fields_are_left_out(self, legacy_transcript):
        rows = extract_fields(legacy_transcript.segments, legacy_transcript.metadata, ["AI Analysis of Segment"])
        assert rows[0] == {}
        assert rows[1] == {"AI Analysis of Segment": "Speaker introduces the technical agenda."}

    def test_unknown_names_are_skipped(self, legacy_transcript):
        rows = extract_fields(legacy_transcript.segments, legacy_transcript.metadata, ["Bogus", "Segment Identifier"])
        assert rows == [{"Segment Identifier": "seg_1"}, {"Segment Identifier": "seg_2"}]

    def test_failing_accessor_skips_field_only(self, monkeypatch):
        def broken(segment, metadata):
            if segment.segment_id == "bad":
                raise TypeError("boom")
            return segment.text

        monkeypatch.setitem(fields_module._BY_NAME, "Broken", FieldSpec("Broken", broken))
        segments = [
            Segment(start_time=0.0, end_time=1.0, text="ok", segment_id="good"),
            Segment(start_time=1.0, end_time=2.0, text="nope", segment_id="bad"),
        ]
        rows = extract_fields(segments, None, ["Broken", "Segment Identifier"])
        assert rows == [
            {"Broken": "ok", "Segment Identifier": "good"},
            {"Segment Identifier": "bad"},
        ]

    def test_no_segments(self):
        assert extract_fields([], None, ["Segment Transcript"]) == []


class TestFilters:
    def test_filter_by_topic_exact(self, legacy_transcript):
        result = filter_by_topic(legacy_transcript.segments, "Programming")
        assert result == [legacy_transcript.segments[1]]
        assert result[0] is legacy_transcript.segments[1]

    def test_filter_by_topic_is_case_sensitive(self, legacy_transcript):
        assert filter_by_topic(legacy_transcript.segments, "programming") == []

    def test_filter_by_software_matches_list(self, legacy_transcript):
        assert filter_by_software(legacy_transcript.segments, "Zoom") == [legacy_transcript.segments[0]]

    def test_filter_by_software_matches_detected(self, legacy_transcript):
        assert filter_by_software(legacy_transcript.segments, "VS Code") == [legacy_transcript.segments[1]]

    def test_filter_on_raw_is_empty(self, raw_transcript):
        assert filter_by_topic(raw_transcript.segments, "Programming") == []
        assert filter_by_software(raw_transcript.segments, "Zoom") == []

    def test_filter_by_speaker(self, raw_transcript):
        assert filter_by_speaker(raw_transcript.segments, 0) == [raw_transcript.segments[0]]
        assert filter_by_speaker(raw_transcript.segments, 5) == []


class TestCollections:
    def test_predicates_on_legacy(self, legacy_transcript):
        assert has_ai_analysis(legacy_transcript.segments) is True
        assert has_software_detection(legacy_transcript.segments) is True

    def test_predicates_on_raw(self, raw_transcript):
        assert has_ai_analysis(raw_transcript.segments) is False
        assert has_software_detection(raw_transcript.segments) is False

    def test_get_all_topics_from_segments(self, legacy_transcript):
        assert get_all_topics(legacy_transcript.segments) == ["Greeting", "Programming"]

    def test_get_all_topics_falls_back_to_metadata(self, raw_transcript):
        assert get_all_topics(raw_transcript.segments, raw_transcript.metadata) == ["Programming", "Ruby"]

    def test_get_all_software(self, legacy_transcript):
        assert get_all_software(legacy_transcript.segments) == ["PowerPoint", "Zoom", "Ruby", "VS Code"]

    def test_get_all_speakers(self, raw_transcript):
        assert get_all_speakers(raw_transcript.segments) == [0, 1]


class TestStatistics:
    def test_count_words(self):
        assert count_words("  one two\nthree ") == 3
        assert count_words("") == 0

    def test_count_sentences(self):
        assert count_sentences("Hello. How are you? Fine") == 3
        assert count_sentences("") == 0

    def test_total_duration_prefers_metadata(self, raw_transcript):
        assert total_duration(raw_transcript.segments, raw_transcript.metadata) == 8.0

    def test_total_duration_from_segments(self, legacy_transcript):
        assert total_duration(legacy_transcript.segments, legacy_transcript.metadata) == 10.0

    def test_text_stats(self, legacy_transcript):
        stats = text_stats(legacy_transcript.segments, legacy_transcript.metadata)
        assert stats["total_words"] == 13
        assert stats["total_sentences"] == 3
        assert stats["total_paragraphs"] == 2
        assert stats["total_topics"] == 2
        assert stats["total_intents"] == 0
        assert stats["total_duration"] == 10.0

    def test_summary_stats(self, legacy_transcript):
        stats = summary_stats(legacy_transcript.segments, legacy_transcript.metadata)
        assert stats["total_segments"] == 2
        assert stats["available_fields"] == 13
        assert stats["fields_with_data"] == 11
        assert stats["total_words"] == 13

    def test_summary_stats_without_metadata(self):
        stats = summary_stats([])
        assert stats["total_segments"] == 0
        assert stats["fields_with_data"] == 0
        assert stats["total_duration"] == 0.0

    def test_speaker_statistics(self, raw_transcript):
        stats = speaker_statistics(raw_transcript.segments)
        assert stats["speaker_count"] == 2
        assert stats["total_words_with_speaker_data"] == 10
        assert stats["speakers"][0] == {
            "segment_count": 1,
            "word_count": 5,
            "total_duration": 1.5,
            "avg_confidence": 0.955,
        }
        assert stats["overall_avg_confidence"] == pytest.approx(0.9525)

    def test_speaker_statistics_without_speakers(self, legacy_transcript):
        stats = speaker_statistics(legacy_transcript.segments)
        assert stats["speaker_count"] == 0
        assert stats["speakers"] == {}
        assert stats["overall_avg_confidence"] == 0.0

    def test_metadata_none_is_empty(self):
        segments = [Segment(start_time=0.0, end_time=3.0, text="a b")]
        assert text_stats(segments, None)["total_topics"] == 0
        assert text_stats(segments, DocumentMetadata(intents=["x"]))["total_intents"] == 1
