"""Tests for SSML task building (Layer 1c)."""

import xml.etree.ElementTree as ET

import pytest

from subtitle_dubber.markup import build_task, escape_text, groups_to_tasks
from subtitle_dubber.models import Group, Part


def _speech(ms, text):
    return Part(type="speech", duration_ms=ms, text=text, voice="en-US-AndrewMultilingualNeural", lang="en")


def _gap(ms):
    return Part(type="gap", duration_ms=ms, voice="en-US-AndrewMultilingualNeural", lang="en")


def test_escape_text():
    assert escape_text("a & b < c > d \"e\" 'f'") == "a &amp; b &lt; c &gt; d &quot;e&quot; &apos;f&apos;"


def test_escape_text_flattens_newlines():
    assert escape_text("one\ntwo\r\nthree") == "one two three"


def test_build_task_markup():
    group = Group(duration_ms=3000, parts=[_speech(2000, "Hi."), _gap(1000)])
    task = build_task(group)
    assert '<prosody duration="2000ms">Hi.</prosody>' in task.markup
    assert '<break time="1000ms"/>' in task.markup
    assert task.markup.index("prosody") < task.markup.index("break")
    assert 'xml:lang="en"' in task.markup
    assert '<voice name="en-US-AndrewMultilingualNeural">' in task.markup


def test_build_task_fields():
    group = Group(duration_ms=5000, parts=[_speech(2000, "Hi."), _gap(1000), _speech(2000, "Bye.")])
    task = build_task(group)
    assert task.text == "Hi. Bye."
    assert task.duration_ms == 5000
    assert task.type == "speech"
    assert task.voice == "en-US-AndrewMultilingualNeural"
    assert task.lang == "en"


def test_build_task_escapes_speech():
    task = build_task(Group(duration_ms=1000, parts=[_speech(1000, "Tom & Jerry <3")]))
    assert "Tom &amp; Jerry &lt;3" in task.markup
    assert task.text == "Tom & Jerry <3"


def test_build_task_is_well_formed_xml():
    group = Group(duration_ms=3000, parts=[_speech(2000, 'He said "no" & left\nquietly.'), _gap(1000)])
    root = ET.fromstring(build_task(group).markup.encode("utf-8"))
    assert root.tag.endswith("speak")


def test_build_task_gap_group():
    task = build_task(Group(type="gap", duration_ms=6000, parts=[_gap(6000)]))
    assert task.type == "gap"
    assert task.text == ""
    assert "prosody" not in task.markup


def test_build_task_empty_group():
    with pytest.raises(ValueError):
        build_task(Group())


def test_groups_to_tasks_keeps_order():
    groups = [
        Group(duration_ms=1000, parts=[_speech(1000, "first")]),
        Group(type="gap", duration_ms=7000, parts=[_gap(7000)]),
        Group(duration_ms=1000, parts=[_speech(1000, "last")]),
    ]
    tasks = groups_to_tasks(groups)
    assert [t.text for t in tasks] == ["first", "", "last"]
    assert [t.duration_ms for t in tasks] == [1000, 7000, 1000]
