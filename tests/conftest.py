"""Shared fixtures for subtitle dubber tests."""

import threading

import pytest
from pydub import AudioSegment

from subtitle_dubber.models import Cue, Task


SAMPLE_SRT = """1
00:00:00,000 --> 00:00:02,000
Hi.

2
00:00:03,000 --> 00:00:05,000
Bye.
"""


class FakeProvider:
    """Provider double that writes a silent clip of a fixed length."""

    name = "fake"
    voice_map = {"en": "fake-voice"}
    default_policy = "stretch"

    def __init__(self, clip_ms=700, errors=None):
        self.clip_ms = clip_ms
        self.errors = list(errors or [])
        self.calls = []
        self._lock = threading.Lock()

    def resolve_voice(self, lang, voice_key=None):
        return self.voice_map[lang]

    def synthesize(self, task, output_path):
        with self._lock:
            self.calls.append(task)
            error = self.errors.pop(0) if self.errors else None
        if error is not None:
            raise error
        AudioSegment.silent(duration=self.clip_ms).export(output_path, format="wav")


def make_wav(path, duration_ms):
    """Write a silent WAV of duration_ms and return its path as a string."""
    AudioSegment.silent(duration=duration_ms, frame_rate=44100).export(str(path), format="wav")
    return str(path)


@pytest.fixture
def sample_srt(tmp_path):
    path = tmp_path / "talk.en.srt"
    path.write_text(SAMPLE_SRT)
    return str(path)


@pytest.fixture
def sample_cues():
    return [
        Cue(id="1", start_ms=0, end_ms=2000, text="Hi."),
        Cue(id="2", start_ms=3000, end_ms=5000, text="Bye."),
    ]


@pytest.fixture
def speech_task():
    return Task(
        markup="<speak/>",
        text="Hello there.",
        duration_ms=1000,
        type="speech",
        voice="fake-voice",
        lang="en",
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()
