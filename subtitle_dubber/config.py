"""Pipeline configuration and credential lookup."""

import json
import os
from dataclasses import dataclass, field, fields, asdict

from subtitle_dubber.constants import DEFAULT_PROVIDER, DEFAULT_WORKERS, POLICIES
from subtitle_dubber.errors import InputError
from subtitle_dubber.models import GroupingThresholds


@dataclass
class DubConfig:
    """Everything a dubbing run needs besides its input and output paths.

    policy=None means "use the provider's default"; voice overrides the
    provider's voice map, voice_key picks a named variant from it.
    """

    lang: str = ""
    voice: str = ""
    voice_key: str = ""
    provider: str = DEFAULT_PROVIDER
    thresholds: GroupingThresholds = field(default_factory=GroupingThresholds)
    policy: str | None = None
    workers: int = DEFAULT_WORKERS
    allow_overlaps: bool = False
    resume: bool = True
    force: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "DubConfig":
        """Build a config from plain JSON data, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InputError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values = dict(data)
        if "thresholds" in values:
            threshold_data = values["thresholds"] or {}
            threshold_keys = {f.name for f in fields(GroupingThresholds)}
            bad = set(threshold_data) - threshold_keys
            if bad:
                raise InputError(f"Unknown threshold keys: {', '.join(sorted(bad))}")
            values["thresholds"] = GroupingThresholds(**threshold_data)

        config = cls(**values)
        config.validate()
        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> None:
        if self.policy is not None and self.policy not in POLICIES:
            raise InputError(f"Unknown duration policy: {self.policy!r}")
        if self.workers < 1:
            raise InputError(f"workers must be at least 1, got {self.workers}")


def load_config(path: str) -> DubConfig:
    """Read a DubConfig from a JSON file."""
    if not os.path.exists(path):
        raise InputError(f"Config file not found: {path}")
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InputError(f"Malformed config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise InputError(f"Config file {path} must contain a JSON object")
    return DubConfig.from_dict(data)


def get_env(name: str) -> str:
    """Return a required environment variable (credentials, regions)."""
    value = os.environ.get(name)
    if not value:
        raise InputError(f"Environment variable {name} is not set")
    return value
