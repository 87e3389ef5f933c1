"""Build SSML synthesis tasks from part groups."""

from xml.sax.saxutils import escape

from subtitle_dubber.models import Group, Task, SPEECH

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

SSML_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis" '
    'xmlns:mstts="http://www.w3.org/2001/mstts" xml:lang="{lang}">\n'
    '<voice name="{voice}">\n'
)
SSML_FOOTER = "</voice>\n</speak>"


def flatten(text: str) -> str:
    return text.replace("\r\n", " ").replace("\n", " ")


def escape_text(text: str) -> str:
    """Escape the five XML special characters and flatten newlines."""
    return flatten(escape(text, _XML_ENTITIES))


def build_task(group: Group) -> Task:
    """Render one group as a single-voice SSML document."""
    if not group.parts:
        raise ValueError("Cannot build a task from an empty group")

    voice = group.parts[0].voice
    lang = group.parts[0].lang

    lines = [SSML_HEADER.format(lang=escape_text(lang), voice=escape_text(voice))]
    texts = []
    for part in group.parts:
        if part.type == SPEECH:
            texts.append(flatten(part.text))
            lines.append(f'<prosody duration="{part.duration_ms}ms">{escape_text(part.text)}</prosody>\n')
        else:
            lines.append(f'<break time="{part.duration_ms}ms"/>\n')
    lines.append(SSML_FOOTER)

    return Task(
        markup="".join(lines),
        text=" ".join(texts),
        duration_ms=group.duration_ms,
        type=group.type,
        voice=voice,
        lang=lang,
    )


def groups_to_tasks(groups: list[Group]) -> list[Task]:
    return [build_task(group) for group in groups]
