"""Exception types raised by the dubbing pipeline."""


class DubbingError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class InputError(DubbingError, ValueError):
    """Malformed subtitles, invalid configuration or unsupported input file."""


class ProviderError(DubbingError):
    """A speech provider failed to synthesize a task.

    Carries the provider name so batch failures can be traced back.
    """

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class ProviderCapacityError(ProviderError):
    """The provider has no free capacity right now; the request may be retried."""


class DurationCorrectionError(DubbingError):
    """A corrected clip is still outside the duration tolerance."""

    def __init__(self, path: str, expected_ms: int, actual_ms: int, reason: str = "") -> None:
        self.path = path
        self.expected_ms = expected_ms
        self.actual_ms = actual_ms
        self.reason = reason
        if reason:
            message = f"Could not correct {path} from {actual_ms}ms to {expected_ms}ms: {reason}"
        else:
            message = f"Duration of {path} is {actual_ms}ms after correction, expected {expected_ms}ms"
        super().__init__(message)
