"""Read and write SubRip (.srt) subtitle timelines."""

from datetime import timedelta

import srt

from subtitle_dubber.errors import InputError
from subtitle_dubber.models import Cue

_ONE_MS = timedelta(milliseconds=1)


def timedelta_to_ms(value: timedelta) -> int:
    return value // _ONE_MS


def parse_srt(text: str) -> list[Cue]:
    """Parse SRT text into cues, keeping document order.

    Ordering is not enforced here; segmentation validates it.
    """
    try:
        subtitles = list(srt.parse(text))
    except srt.SRTParseError as e:
        raise InputError(f"Malformed subtitles: {e}") from e

    return [
        Cue(
            id=str(sub.index),
            start_ms=timedelta_to_ms(sub.start),
            end_ms=timedelta_to_ms(sub.end),
            text=sub.content.strip(),
        )
        for sub in subtitles
    ]


def serialize_srt(cues: list[Cue]) -> str:
    """Compose cues back into SRT text with sequential ids."""
    subtitles = [
        srt.Subtitle(
            index=i + 1,
            start=timedelta(milliseconds=cue.start_ms),
            end=timedelta(milliseconds=cue.end_ms),
            content=cue.text,
        )
        for i, cue in enumerate(cues)
    ]
    return srt.compose(subtitles, reindex=False)


def load_srt(path: str) -> list[Cue]:
    """Read an .srt file from disk. Unreadable files raise InputError."""
    try:
        with open(path, encoding="utf-8-sig") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise InputError(f"Subtitles are not valid UTF-8: {path} ({e.reason} at byte {e.start})") from e
    except OSError as e:
        raise InputError(f"Cannot read subtitles {path}: {e.strerror or e}") from e
    return parse_srt(text)
