"""Data models for the dubbing pipeline."""

from dataclasses import dataclass, field

from subtitle_dubber.constants import (
    MIN_SPEECH_MS,
    MAX_SPEECH_MS,
    CRITICAL_MAX_SPEECH_MS,
    MAX_GAP_MS,
)

SPEECH = "speech"
GAP = "gap"


@dataclass(frozen=True)
class Cue:
    id: str
    start_ms: int
    end_ms: int
    text: str


@dataclass(frozen=True)
class Part:
    type: str          # "speech" or "gap"
    duration_ms: int
    text: str = ""
    voice: str = ""
    lang: str = ""


@dataclass
class Group:
    type: str = SPEECH
    duration_ms: int = 0
    parts: list[Part] = field(default_factory=list)


@dataclass(frozen=True)
class Task:
    markup: str
    text: str
    duration_ms: int
    type: str
    voice: str
    lang: str


@dataclass(frozen=True)
class GroupingThresholds:
    min_speech_ms: int = MIN_SPEECH_MS
    max_speech_ms: int = MAX_SPEECH_MS
    critical_max_speech_ms: int = CRITICAL_MAX_SPEECH_MS
    max_gap_ms: int = MAX_GAP_MS
    separate_sentences: bool = False
