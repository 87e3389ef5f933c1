"""Group parts into bounded-length synthesis requests."""

import logging

from subtitle_dubber.constants import SENTENCE_ENDINGS
from subtitle_dubber.errors import InputError
from subtitle_dubber.models import Group, GroupingThresholds, Part, GAP

logger = logging.getLogger(__name__)


def is_end_of_sentence(text: str) -> bool:
    """True when text ends at a sentence boundary."""
    return text.rstrip().endswith(SENTENCE_ENDINGS)


def validate_thresholds(thresholds: GroupingThresholds) -> None:
    """Raise InputError unless 0 < min <= max <= critical and max_gap > 0."""
    t = thresholds
    if min(t.min_speech_ms, t.max_speech_ms, t.critical_max_speech_ms, t.max_gap_ms) <= 0:
        raise InputError(f"Grouping thresholds must be positive: {t}")
    if not t.min_speech_ms <= t.max_speech_ms <= t.critical_max_speech_ms:
        raise InputError(
            "Expected min_speech_ms <= max_speech_ms <= critical_max_speech_ms, got "
            f"{t.min_speech_ms} / {t.max_speech_ms} / {t.critical_max_speech_ms}"
        )


class GroupAccumulator:
    """Collects parts into the current group and flushes finished groups."""

    def __init__(self) -> None:
        self.groups: list[Group] = []
        self.current = Group()

    @property
    def empty(self) -> bool:
        return not self.current.parts

    @property
    def ends_sentence(self) -> bool:
        """Whether the last appended part closes a sentence."""
        return not self.empty and is_end_of_sentence(self.current.parts[-1].text)

    def would_exceed(self, part: Part, limit_ms: int) -> bool:
        return self.current.duration_ms + part.duration_ms > limit_ms

    def append(self, part: Part) -> None:
        self.current.parts.append(part)
        self.current.duration_ms += part.duration_ms

    def flush(self) -> None:
        """Close the current group. Empty groups are never emitted."""
        if self.empty:
            return
        if all(part.type == GAP for part in self.current.parts):
            self.current.type = GAP
        self.groups.append(self.current)
        self.current = Group()

    def isolate(self, part: Part) -> None:
        """Emit part as a singleton gap group of its own."""
        self.flush()
        self.groups.append(Group(type=GAP, duration_ms=part.duration_ms, parts=[part]))


def group_parts(parts: list[Part], thresholds: GroupingThresholds | None = None) -> list[Group]:
    """Partition parts into groups.

    Rules, applied per part in order:
      - a gap longer than max_gap_ms always becomes its own group;
      - past max_speech_ms the group is closed at the next sentence boundary;
      - past critical_max_speech_ms the group is closed regardless;
      - with separate_sentences every sentence closes its group.
    Concatenating the parts of all returned groups gives back `parts`.
    """
    if thresholds is None:
        thresholds = GroupingThresholds()
    validate_thresholds(thresholds)

    acc = GroupAccumulator()

    for part in parts:
        if part.type == GAP and part.duration_ms > thresholds.max_gap_ms:
            acc.isolate(part)
            continue

        if acc.would_exceed(part, thresholds.max_speech_ms) and acc.ends_sentence:
            acc.flush()
        elif acc.would_exceed(part, thresholds.critical_max_speech_ms):
            logger.info(
                "Splitting mid-sentence: group would reach %dms (critical cap %dms)",
                acc.current.duration_ms + part.duration_ms,
                thresholds.critical_max_speech_ms,
            )
            acc.flush()
        elif thresholds.separate_sentences and acc.ends_sentence:
            acc.flush()

        acc.append(part)

    acc.flush()

    groups = acc.groups
    # Trailing cleanup
    if groups and groups[-1].duration_ms == 0:
        groups.pop()
    elif groups and len(groups[-1].parts) == 1 and groups[-1].parts[0].type == GAP:
        groups[-1].type = GAP

    return groups
