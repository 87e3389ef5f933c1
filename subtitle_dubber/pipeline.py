"""Subtitle-to-speech pipeline: plan tasks, synthesize fragments, assemble."""

import logging
import os
import re
import time

from subtitle_dubber.assembly import assemble
from subtitle_dubber.audio import get_duration
from subtitle_dubber.config import DubConfig
from subtitle_dubber.errors import InputError
from subtitle_dubber.executor import run_tasks
from subtitle_dubber.grouper import group_parts
from subtitle_dubber.markup import groups_to_tasks
from subtitle_dubber.models import Cue, GroupingThresholds, Task
from subtitle_dubber.segmenter import segment_cues, validate_cues
from subtitle_dubber.subtitles import load_srt
from subtitle_dubber.tts import SpeechProvider, get_provider

logger = logging.getLogger(__name__)

_LANG_RE = re.compile(r"^[a-z]{2,3}(?:-[A-Za-z]{2,4})?$")


def lang_from_path(srt_path: str) -> str | None:
    """Language tag encoded in a file name: "talk.en.srt" → "en".

    Returns None when the name carries no single language suffix.
    """
    name = os.path.splitext(os.path.basename(srt_path))[0]
    if "." not in name:
        return None
    candidate = name.rsplit(".", 1)[1]
    return candidate if _LANG_RE.match(candidate) else None


def build_tasks(
    cues: list[Cue],
    total_duration_ms: int,
    voice: str,
    lang: str,
    thresholds: GroupingThresholds | None = None,
    allow_overlaps: bool = False,
) -> list[Task]:
    """Validate, segment, group and render cues into synthesis tasks."""
    validate_cues(cues, allow_overlaps=allow_overlaps)
    parts = segment_cues(cues, total_duration_ms, voice, lang)
    groups = group_parts(parts, thresholds)
    return groups_to_tasks(groups)


def resolve_lang(srt_path: str, config: DubConfig) -> str:
    lang = config.lang or lang_from_path(srt_path)
    if not lang:
        raise InputError(f"Language not given and not found in file name: {srt_path}")
    return lang


def check_output_path(output_path: str, *inputs: str) -> None:
    """Refuse to write the output over one of the run's input files."""
    target = os.path.abspath(output_path)
    for path in inputs:
        if os.path.abspath(path) == target:
            raise InputError(f"Output path {output_path} would overwrite input {path}")


def dub(
    srt_path: str,
    reference_path: str,
    output_path: str,
    config: DubConfig | None = None,
    provider: SpeechProvider | None = None,
) -> str:
    """Synthesize srt_path into output_path, as long as reference_path.

    Does nothing when output_path exists, unless config.force is set.
    Any task failure aborts the run before assembly.
    """
    if config is None:
        config = DubConfig()
    config.validate()

    if os.path.splitext(srt_path)[1].lower() != ".srt":
        raise InputError(f"Only .srt files are supported: {srt_path}")
    if not os.path.exists(srt_path):
        raise InputError(f"File not found: {srt_path}")
    if not os.path.exists(reference_path):
        raise InputError(f"Reference audio not found: {reference_path}")
    check_output_path(output_path, reference_path, srt_path)

    if os.path.exists(output_path) and not config.force:
        logger.info("Output already exists, skipping: %s", output_path)
        return output_path

    if provider is None:
        provider = get_provider(config.provider)
    lang = resolve_lang(srt_path, config)
    voice = config.voice or provider.resolve_voice(lang, config.voice_key or None)

    started = time.monotonic()
    total_ms = get_duration(reference_path)
    cues = load_srt(srt_path)
    tasks = build_tasks(
        cues, total_ms, voice, lang,
        thresholds=config.thresholds,
        allow_overlaps=config.allow_overlaps,
    )
    logger.info(
        "Planned %d tasks for %d cues (%dms, %s, voice %s)",
        len(tasks), len(cues), total_ms, lang, voice,
    )

    output_dir = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(output_dir, exist_ok=True)

    fragments = run_tasks(
        tasks, output_path, provider,
        workers=config.workers,
        policy=config.policy,
        resume=config.resume and not config.force,
    )
    final_ms = assemble(fragments, reference_path, output_path)

    logger.info("Dubbed %s (%dms) in %.1fs", output_path, final_ms, time.monotonic() - started)
    return output_path
