"""Command-line interface for the transcript converter.

WHY: Users need a simple way to convert and inspect transcript files
from the terminal. The CLI wires the pipeline (load, normalize, query,
render) to three subcommands and handles everything that touches the
outside world: argument parsing, file writing, and exit codes.

HOW: argparse with subcommands ``convert``, ``analyze`` and ``fields``.
Each handler calls into pipeline.py and writes the returned content to a
file or stdout. Status messages go to stderr. Pipeline errors are
reported as ``Error: <message>`` and mapped to the error kind's exit code.

RULES:
- convert: output defaults to {stem}{suffix} next to the input;
  --output names the file explicitly; --stdout prints instead
- Output naming: numeric suffix on conflict (interview-2.srt)
- analyze: prints an overview; --speaker takes the 1-based number the
  overview and speaker labels show; with --export saves {stem}_analysis.{ext}
  (or --output, or --stdout)
- fields: lists every catalog field, marking the ones with data
- --verbose switches logging to DEBUG; otherwise WARNING
- main() returns the process exit code (0 on success)
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from transcript_converter import __version__
from transcript_converter.config import DEFAULT_EXPORT_FORMAT
from transcript_converter.core.fields import available_fields, get_field_options
from transcript_converter.core.normalizer import load_transcript
from transcript_converter.core.query import (
    get_all_software,
    get_all_speakers,
    get_all_topics,
    speaker_statistics,
    summary_stats,
)
from transcript_converter.errors import TranscriptConverterError
from transcript_converter.formatters import FORMAT_ALIASES, supported_formats
from transcript_converter.formatters.analysis_report import ANALYSIS_FORMATS, ANALYSIS_SUFFIXES
from transcript_converter.formatters.base import FormatterOutput
from transcript_converter.pipeline import AnalysisResult, analyze_file, convert_file


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _speaker_number(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("speaker numbers start at 1, got {}".format(value))
    return number


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    WHY: Users may run the converter several times on the same file.
    Overwriting previous output would lose work.

    RULES:
    - First attempt: {stem}{suffix} (e.g. interview.srt)
    - Conflict: split suffix at the last dot and insert the counter before
      the extension (interview-2.srt, interview_converted-2.json)
    - Counter starts at 2 and increments

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _write_explicit(content: str, target: Path) -> Path:
    path = _resolve_output_path(target.stem, target.suffix, target.parent)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _run_convert(args: argparse.Namespace) -> int:
    input_path = Path(args.input_file)
    result = convert_file(
        input_path,
        target_format=args.format,
        config_path=args.config,
        on_status=_status if args.verbose else None,
    )

    if args.stdout:
        sys.stdout.write(result.content)
        return 0

    if args.output:
        saved = _write_explicit(result.content, Path(args.output))
        _status("Saved: {}".format(saved))
        return 0

    for output in result.outputs:
        saved = _save_output(output, input_path.stem, input_path.resolve().parent)
        _status("Saved: {}".format(saved))
    return 0


def _print_overview(result: AnalysisResult) -> None:
    transcript = result.transcript
    stats = summary_stats(transcript.segments, transcript.metadata)
    print("File: {} ({} format)".format(transcript.source_filename, transcript.source_format))
    print("Segments: {} ({} matching)".format(stats["total_segments"], len(result.segments)))
    print("Fields with data: {} of {}".format(stats["fields_with_data"], stats["available_fields"]))
    print("Words: {}  Sentences: {}  Duration: {:.1f}s".format(
        stats["total_words"], stats["total_sentences"], stats["total_duration"]
    ))

    topics = get_all_topics(result.segments, transcript.metadata)
    if topics:
        print("Topics: {}".format(", ".join(topics)))
    software = get_all_software(result.segments)
    if software:
        print("Software: {}".format(", ".join(software)))

    if get_all_speakers(result.segments):
        speakers = speaker_statistics(result.segments)
        print("Speakers: {}".format(speakers["speaker_count"]))
        for speaker, entry in speakers["speakers"].items():
            print("  Speaker {}: {} segments, {} words, {:.1f}s, avg confidence {:.2f}".format(
                speaker + 1,
                entry["segment_count"],
                entry["word_count"],
                entry["total_duration"],
                entry["avg_confidence"],
            ))

    for number, row in enumerate(result.rows, 1):
        print("")
        print("Segment {}".format(number))
        for name in result.fields:
            if name in row:
                print("  {}: {}".format(name, row[name]))


def _run_analyze(args: argparse.Namespace) -> int:
    result = analyze_file(
        args.input_file,
        fields=args.fields,
        topic=args.topic,
        software=args.software,
        speaker=args.speaker - 1 if args.speaker is not None else None,
        export_format=args.export,
        on_status=_status if args.verbose else None,
    )

    if result.content is None:
        _print_overview(result)
        return 0

    if args.stdout:
        sys.stdout.write(result.content)
        return 0

    if args.output:
        saved = _write_explicit(result.content, Path(args.output))
    else:
        input_path = Path(args.input_file)
        saved = _resolve_output_path(
            input_path.stem, ANALYSIS_SUFFIXES[result.export_format], input_path.resolve().parent
        )
        saved.write_text(result.content, encoding="utf-8")
    _status("Saved: {}".format(saved))
    return 0


def _run_fields(args: argparse.Namespace) -> int:
    transcript = load_transcript(args.input_file)
    with_data = set(get_field_options(transcript.segments, transcript.metadata))
    for name in available_fields():
        marker = "x" if name in with_data else " "
        print("[{}] {}".format(marker, name))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="transcript-converter",
        description="Normalize ASR transcript JSON (raw or legacy) and export it "
                    "as SRT, Markdown, JSON or a plain-text summary.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    subparsers = parser.add_subparsers(dest="command", required=True)

    format_choices = supported_formats() + sorted(FORMAT_ALIASES)

    convert = subparsers.add_parser("convert", help="Convert a transcript to another format.")
    convert.add_argument("input_file", help="Path to the transcript JSON file.")
    convert.add_argument(
        "--format",
        default=DEFAULT_EXPORT_FORMAT,
        type=str.lower,
        help="Output format: {} (default: %(default)s).".format(", ".join(format_choices)),
    )
    destination = convert.add_mutually_exclusive_group()
    destination.add_argument("--output", default=None, help="Output file path.")
    destination.add_argument("--stdout", action="store_true", help="Print the output instead of saving it.")
    convert.add_argument(
        "--config",
        default=None,
        help="YAML configuration file with a speaker_diarization block.",
    )
    convert.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    convert.set_defaults(handler=_run_convert)

    analyze = subparsers.add_parser("analyze", help="Query fields, filter segments and export reports.")
    analyze.add_argument("input_file", help="Path to the transcript JSON file.")
    analyze.add_argument(
        "--fields",
        nargs="+",
        default=None,
        metavar="NAME",
        help="Display names of the fields to include (default: every field with data).",
    )
    analyze.add_argument("--topic", default=None, help="Only segments with this topic.")
    analyze.add_argument("--software", default=None, help="Only segments mentioning this software.")
    analyze.add_argument(
        "--speaker",
        type=_speaker_number,
        default=None,
        metavar="N",
        help="Only segments from Speaker N, numbered from 1 as in the overview.",
    )
    analyze.add_argument(
        "--export",
        default=None,
        type=str.lower,
        help="Export format: {}.".format(", ".join(ANALYSIS_FORMATS)),
    )
    analyze_destination = analyze.add_mutually_exclusive_group()
    analyze_destination.add_argument("--output", default=None, help="Write the export to this file.")
    analyze_destination.add_argument("--stdout", action="store_true", help="Print the export instead of saving it.")
    analyze.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    analyze.set_defaults(handler=_run_analyze)

    fields = subparsers.add_parser("fields", help="List catalog fields and which ones have data.")
    fields.add_argument("input_file", help="Path to the transcript JSON file.")
    fields.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    fields.set_defaults(handler=_run_fields)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the exit code instead of exiting
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.handler(args)
    except TranscriptConverterError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
