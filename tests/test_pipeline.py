"""Tests for the end-to-end pipeline (Layer 4)."""

import os

import pytest
from pydub import AudioSegment

from subtitle_dubber.config import DubConfig
from subtitle_dubber.errors import InputError, ProviderError
from subtitle_dubber.executor import fragment_path
from subtitle_dubber.models import Cue
from subtitle_dubber.pipeline import build_tasks, dub, lang_from_path, resolve_lang

from conftest import FakeProvider, make_wav


@pytest.mark.parametrize("path,expected", [
    ("talk.en.srt", "en"),
    ("/data/ep01.pt-BR.srt", "pt-BR"),
    ("show.s01e02.de.srt", "de"),
    ("talk.srt", None),
    ("talk.english.srt", None),
])
def test_lang_from_path(path, expected):
    assert lang_from_path(path) == expected


def test_resolve_lang_prefers_config():
    assert resolve_lang("talk.en.srt", DubConfig(lang="es")) == "es"
    assert resolve_lang("talk.en.srt", DubConfig()) == "en"


def test_resolve_lang_missing():
    with pytest.raises(InputError, match="Language"):
        resolve_lang("talk.srt", DubConfig())


def test_build_tasks_hi_bye(sample_cues):
    tasks = build_tasks(sample_cues, 6000, "v", "en")
    assert len(tasks) == 1
    task = tasks[0]
    assert task.duration_ms == 6000
    assert task.text == "Hi. Bye."
    assert task.markup.count("<prosody") == 2
    assert task.markup.count("<break") == 2


def test_build_tasks_isolates_long_pause():
    cues = [
        Cue(id="1", start_ms=0, end_ms=2000, text="and so"),
        Cue(id="2", start_ms=8000, end_ms=10_000, text="it ended."),
    ]
    tasks = build_tasks(cues, 10_000, "v", "en")
    assert [(t.type, t.duration_ms) for t in tasks] == [("speech", 2000), ("gap", 6000), ("speech", 2000)]
    assert sum(t.duration_ms for t in tasks) == 10_000


def test_build_tasks_rejects_overlap():
    cues = [
        Cue(id="1", start_ms=0, end_ms=2000, text="a"),
        Cue(id="2", start_ms=1000, end_ms=3000, text="b"),
    ]
    with pytest.raises(InputError):
        build_tasks(cues, 3000, "v", "en")
    assert len(build_tasks(cues, 3000, "v", "en", allow_overlaps=True)) == 1


# --- dub ---

def _config(**kwargs):
    kwargs.setdefault("workers", 1)
    kwargs.setdefault("policy", "normalize")
    return DubConfig(**kwargs)


def test_dub_end_to_end(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "source.wav", 6000)
    output = str(tmp_path / "talk.en.wav")
    provider = FakeProvider()

    result = dub(sample_srt, reference, output, _config(), provider=provider)

    assert result == output
    assert len(AudioSegment.from_file(output)) == 6000
    assert [t.text for t in provider.calls] == ["Hi. Bye."]
    assert not os.path.exists(fragment_path(output, 0))


def test_dub_with_long_pause(tmp_path):
    srt = tmp_path / "talk.en.srt"
    srt.write_text(
        "1\n00:00:00,000 --> 00:00:02,000\nand so\n\n"
        "2\n00:00:08,000 --> 00:00:10,000\nit ended.\n"
    )
    reference = make_wav(tmp_path / "source.wav", 11_000)
    output = str(tmp_path / "talk.en.wav")
    provider = FakeProvider(clip_ms=1500)

    dub(str(srt), reference, output, _config(workers=3), provider=provider)

    assert len(AudioSegment.from_file(output)) == 11_000
    assert sorted(t.text for t in provider.calls) == ["and so", "it ended."]


def test_dub_skips_existing_output(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "source.wav", 6000)
    output = make_wav(tmp_path / "talk.en.wav", 10)
    provider = FakeProvider()
    dub(sample_srt, reference, output, _config(), provider=provider)
    assert provider.calls == []
    assert len(AudioSegment.from_file(output)) == 10


def test_dub_force_regenerates(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "source.wav", 6000)
    output = make_wav(tmp_path / "talk.en.wav", 10)
    provider = FakeProvider()
    dub(sample_srt, reference, output, _config(force=True), provider=provider)
    assert len(provider.calls) == 1
    assert len(AudioSegment.from_file(output)) == 6000


def test_dub_resumes_from_fragments(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "source.wav", 6000)
    output = str(tmp_path / "talk.en.wav")
    make_wav(fragment_path(output, 0), 6000)
    provider = FakeProvider()
    dub(sample_srt, reference, output, _config(), provider=provider)
    assert provider.calls == []
    assert len(AudioSegment.from_file(output)) == 6000


def test_dub_rejects_non_srt(tmp_path):
    vtt = tmp_path / "talk.en.vtt"
    vtt.write_text("WEBVTT\n")
    reference = make_wav(tmp_path / "source.wav", 1000)
    with pytest.raises(InputError, match=r"\.srt"):
        dub(str(vtt), reference, str(tmp_path / "out.wav"), _config(), provider=FakeProvider())


def test_dub_missing_reference(tmp_path, sample_srt):
    with pytest.raises(InputError, match="Reference"):
        dub(sample_srt, str(tmp_path / "nope.wav"), str(tmp_path / "out.wav"), _config(), provider=FakeProvider())


def test_dub_failure_leaves_no_output(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "source.wav", 6000)
    output = str(tmp_path / "talk.en.wav")
    provider = FakeProvider(errors=[ProviderError("fake", "boom")])
    with pytest.raises(ProviderError):
        dub(sample_srt, reference, output, _config(), provider=provider)
    assert not os.path.exists(output)


def test_dub_refuses_to_overwrite_reference(tmp_path, sample_srt):
    reference = make_wav(tmp_path / "talk.en.wav", 6000)
    provider = FakeProvider()
    with pytest.raises(InputError, match="overwrite"):
        dub(sample_srt, reference, reference, _config(force=True), provider=provider)
    assert provider.calls == []
    assert len(AudioSegment.from_file(reference)) == 6000


def test_dub_refuses_relative_alias_of_reference(tmp_path, sample_srt, monkeypatch):
    make_wav(tmp_path / "source.wav", 6000)
    monkeypatch.chdir(tmp_path)
    with pytest.raises(InputError, match="overwrite"):
        dub(sample_srt, "source.wav", str(tmp_path / "source.wav"), _config(), provider=FakeProvider())
