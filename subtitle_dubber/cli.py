"""CLI interface with subcommand routing."""

import argparse
import dataclasses
import json
import logging
import os
import shutil
import sys

from dotenv import load_dotenv

from subtitle_dubber.audio import get_duration
from subtitle_dubber.config import DubConfig, load_config
from subtitle_dubber.constants import POLICIES, VERSION
from subtitle_dubber.errors import DubbingError
from subtitle_dubber.pipeline import build_tasks, check_output_path, dub, resolve_lang
from subtitle_dubber.subtitles import load_srt
from subtitle_dubber.tts import PROVIDERS, get_provider

_THRESHOLD_FLAGS = ("min_speech_ms", "max_speech_ms", "critical_max_speech_ms", "max_gap_ms")


def _check_ffmpeg():
    """Verify ffmpeg is installed."""
    if not shutil.which("ffmpeg"):
        print("Error: ffmpeg is required but not found.", file=sys.stderr)
        print("Install with: brew install ffmpeg  (or apt install ffmpeg)", file=sys.stderr)
        raise SystemExit(1)


def _default_output_path(srt_path: str, lang: str) -> str:
    """Output path next to the subtitles: talk.en.srt + en → talk.en.mp3"""
    stem = os.path.splitext(srt_path)[0]
    if stem.endswith(f".{lang}"):
        stem = stem[: -len(lang) - 1]
    return f"{stem}.{lang}.mp3"


def _build_config(args) -> DubConfig:
    """Start from --config (or defaults) and apply explicit CLI flags."""
    config = load_config(args.config) if getattr(args, "config", None) else DubConfig()

    overrides = {}
    for name in ("lang", "voice", "voice_key", "provider", "policy", "workers"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if getattr(args, "allow_overlaps", False):
        overrides["allow_overlaps"] = True
    if getattr(args, "no_resume", False):
        overrides["resume"] = False
    if getattr(args, "force", False):
        overrides["force"] = True

    threshold_overrides = {
        name: getattr(args, name) for name in _THRESHOLD_FLAGS if getattr(args, name, None) is not None
    }
    if getattr(args, "separate_sentences", False):
        threshold_overrides["separate_sentences"] = True
    if threshold_overrides:
        overrides["thresholds"] = dataclasses.replace(config.thresholds, **threshold_overrides)

    config = dataclasses.replace(config, **overrides)
    config.validate()
    return config


def cmd_dub(args):
    """Synthesize a subtitle file into an audio track."""
    _check_ffmpeg()
    config = _build_config(args)

    lang = resolve_lang(args.srt, config)
    output_path = args.output or _default_output_path(args.srt, lang)
    check_output_path(output_path, args.reference, args.srt)
    if os.path.exists(output_path) and not config.force:
        print(f"[skip] {output_path} already exists (use --force to regenerate)")
        return

    print(f"Dubbing {args.srt} with {config.provider} ({lang})...")
    dub(args.srt, args.reference, output_path, dataclasses.replace(config, lang=lang))
    print(f"Done: {output_path}")


def cmd_plan(args):
    """Show (and optionally save) the synthesis tasks for a subtitle file."""
    config = _build_config(args)
    lang = resolve_lang(args.srt, config)
    provider = get_provider(config.provider)
    voice = config.voice or provider.resolve_voice(lang, config.voice_key or None)

    if args.reference:
        _check_ffmpeg()
        total_ms = get_duration(args.reference)
    elif args.duration_ms is not None:
        total_ms = args.duration_ms
    else:
        print("Error: 'plan' requires --reference or --duration-ms", file=sys.stderr)
        raise SystemExit(1)

    cues = load_srt(args.srt)
    tasks = build_tasks(
        cues, total_ms, voice, lang,
        thresholds=config.thresholds,
        allow_overlaps=config.allow_overlaps,
    )

    speech_count = sum(1 for t in tasks if t.type == "speech")
    print(f"Planned {len(tasks)} tasks ({speech_count} speech, {len(tasks) - speech_count} gap) "
          f"from {len(cues)} cues, {total_ms}ms total")
    for i, task in enumerate(tasks):
        preview = task.text[:60] + ("..." if len(task.text) > 60 else "")
        print(f"  {i:>4}  {task.type:<6} {task.duration_ms:>8}ms  {preview}")

    if args.output:
        plan = {
            "srt": os.path.abspath(args.srt),
            "total_ms": total_ms,
            "lang": lang,
            "voice": voice,
            "tasks": [dataclasses.asdict(t) for t in tasks],
        }
        with open(args.output, "w") as f:
            json.dump(plan, f, indent=2)
        print(f"Plan written to {args.output}")


def cmd_voices(args):
    """List configured voices per provider."""
    names = [args.provider] if args.provider else list(PROVIDERS)
    filter_str = args.filter.lower() if args.filter else None
    found = False
    for name in names:
        provider = get_provider(name)
        entries = [
            (key, voice) for key, voice in provider.voice_map.items()
            if not filter_str or filter_str in key.lower() or filter_str in voice.lower()
        ]
        if not entries:
            continue
        found = True
        print(f"{name}:")
        for key, voice in entries:
            print(f"  {key:<12} → {voice}")
    if not found:
        print("No matching voices found.")


def _add_pipeline_options(parser):
    parser.add_argument("--config", help="JSON file with pipeline settings")
    parser.add_argument("--lang", help="Language tag (default: taken from the file name, e.g. talk.en.srt)")
    parser.add_argument("--voice", help="Explicit provider voice id")
    parser.add_argument("--voice-key", help="Named voice variant from the provider's voice map")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="Speech provider")
    parser.add_argument("--min-speech-ms", type=int)
    parser.add_argument("--max-speech-ms", type=int, help="Soft cap, split at a sentence boundary")
    parser.add_argument("--critical-max-speech-ms", type=int, help="Hard cap, split even mid-sentence")
    parser.add_argument("--max-gap-ms", type=int, help="Longer gaps become silence of their own")
    parser.add_argument("--separate-sentences", action="store_true", help="One sentence per request")
    parser.add_argument("--allow-overlaps", action="store_true", help="Tolerate overlapping cues")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="subtitle-dubber",
        description="Subtitle Dubber: turn .srt subtitles into a voice track timed to the source audio",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline progress")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # dub
    dub_parser = subparsers.add_parser("dub", help="Synthesize subtitles into an audio track")
    dub_parser.add_argument("srt", help="Path to the .srt file")
    dub_parser.add_argument("reference", help="Source audio whose duration the output must match")
    dub_parser.add_argument("-o", "--output", help="Output audio path (default: <name>.<lang>.mp3)")
    _add_pipeline_options(dub_parser)
    dub_parser.add_argument("--policy", choices=POLICIES, help="Per-fragment duration correction")
    dub_parser.add_argument("--workers", type=int, help="Concurrent synthesis requests")
    dub_parser.add_argument("--no-resume", action="store_true", help="Ignore fragments left by a previous run")
    dub_parser.add_argument("--force", action="store_true", help="Regenerate even if the output exists")
    dub_parser.set_defaults(func=cmd_dub)

    # plan
    plan_parser = subparsers.add_parser("plan", help="Show the synthesis tasks without calling a provider")
    plan_parser.add_argument("srt", help="Path to the .srt file")
    plan_parser.add_argument("--reference", help="Source audio to take the total duration from")
    plan_parser.add_argument("--duration-ms", type=int, help="Total duration in ms")
    plan_parser.add_argument("-o", "--output", help="Write the plan as JSON")
    _add_pipeline_options(plan_parser)
    plan_parser.set_defaults(func=cmd_plan)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List configured voices")
    voices_parser.add_argument("--provider", choices=sorted(PROVIDERS))
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        args.func(args)
    except DubbingError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
