"""Turn a cue timeline into speech and gap parts covering the whole track."""

import logging

from subtitle_dubber.errors import InputError
from subtitle_dubber.models import Cue, Part, SPEECH, GAP

logger = logging.getLogger(__name__)


def validate_cues(cues: list[Cue], allow_overlaps: bool = False) -> None:
    """Reject cues that cannot be laid out on a single timeline.

    Raises InputError for inverted cues, cues out of start order and, unless
    allow_overlaps is set, cues that start before the previous one ends.
    """
    prev = None
    for cue in cues:
        if cue.start_ms < 0 or cue.end_ms < cue.start_ms:
            raise InputError(
                f"Cue {cue.id} has invalid timing: {cue.start_ms}ms -> {cue.end_ms}ms"
            )
        if prev is not None:
            if cue.start_ms < prev.start_ms:
                raise InputError(
                    f"Cue {cue.id} starts at {cue.start_ms}ms, before cue {prev.id} ({prev.start_ms}ms)"
                )
            if cue.start_ms < prev.end_ms:
                if not allow_overlaps:
                    raise InputError(
                        f"Cue {cue.id} overlaps cue {prev.id} by {prev.end_ms - cue.start_ms}ms"
                    )
                logger.warning(
                    "Cue %s overlaps cue %s by %dms; gap suppressed",
                    cue.id, prev.id, prev.end_ms - cue.start_ms,
                )
        prev = cue


def segment_cues(
    cues: list[Cue],
    total_duration_ms: int,
    voice: str,
    lang: str,
) -> list[Part]:
    """Split the timeline into parts.

    Each cue becomes one speech part, silence before a cue becomes a gap part
    and whatever is left up to total_duration_ms becomes a trailing gap.
    Non-positive gaps are skipped. The parts sum to max(total, covered).
    """
    if total_duration_ms < 0:
        raise InputError(f"Total duration must not be negative: {total_duration_ms}ms")

    parts = []
    prev_end = 0
    covered = 0

    for cue in cues:
        gap_ms = cue.start_ms - prev_end
        if gap_ms > 0:
            parts.append(Part(type=GAP, duration_ms=gap_ms, voice=voice, lang=lang))
            covered += gap_ms

        speech_ms = cue.end_ms - cue.start_ms
        parts.append(Part(type=SPEECH, duration_ms=speech_ms, text=cue.text, voice=voice, lang=lang))
        prev_end = max(prev_end, cue.end_ms)
        covered += speech_ms

    remaining = total_duration_ms - covered
    if remaining > 0:
        parts.append(Part(type=GAP, duration_ms=remaining, voice=voice, lang=lang))
    elif remaining < 0:
        logger.warning(
            "Subtitles cover %dms, %dms more than the target duration %dms",
            covered, -remaining, total_duration_ms,
        )

    return parts
