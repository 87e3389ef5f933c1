"""Low-level audio operations: measure, stretch, pad, concatenate, silence."""

import logging
import os
import subprocess
import tempfile

from pydub import AudioSegment

from subtitle_dubber.constants import (
    ATEMPO_MIN,
    ATEMPO_MAX,
    DURATION_TOLERANCE_MS,
    OUTPUT_BITRATE,
    POLICIES,
    SILENCE_FRAME_RATE,
    STRETCH_SKIP_RATIO,
)
from subtitle_dubber.errors import DurationCorrectionError, InputError

logger = logging.getLogger(__name__)


def _format_of(path: str) -> str:
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    return ext or "mp3"


def export_audio(audio: AudioSegment, path: str) -> str:
    """Write audio in the format implied by the path's extension."""
    fmt = _format_of(path)
    if fmt == "mp3":
        audio.export(path, format=fmt, bitrate=OUTPUT_BITRATE)
    else:
        audio.export(path, format=fmt)
    return path


def get_duration(path: str) -> int:
    """Measured duration of an audio file in milliseconds."""
    return len(AudioSegment.from_file(path))


def generate_silence(duration_ms: int, output_path: str) -> str:
    """Write a silent stereo clip of exactly duration_ms."""
    silence = AudioSegment.silent(duration=max(0, duration_ms), frame_rate=SILENCE_FRAME_RATE)
    return export_audio(silence.set_channels(2), output_path)


def concat(paths: list[str], output_path: str) -> str:
    """Concatenate audio files in the given order."""
    if not paths:
        raise ValueError("Nothing to concatenate")

    result = AudioSegment.from_file(paths[0])
    for path in paths[1:]:
        result += AudioSegment.from_file(path)

    return export_audio(result, output_path)


def fit_length(audio: AudioSegment, target_ms: int) -> AudioSegment:
    """Pad with trailing silence or trim so len(audio) == target_ms."""
    if len(audio) > target_ms:
        return audio[:target_ms]
    if len(audio) < target_ms:
        return audio + AudioSegment.silent(duration=target_ms - len(audio), frame_rate=audio.frame_rate)
    return audio


def atempo_factors(ratio: float) -> list[float]:
    """Break a tempo ratio into factors ffmpeg's atempo accepts (0.5-2.0 each)."""
    factors = []
    while ratio > ATEMPO_MAX:
        factors.append(ATEMPO_MAX)
        ratio /= ATEMPO_MAX
    while ratio < ATEMPO_MIN:
        factors.append(ATEMPO_MIN)
        ratio /= ATEMPO_MIN
    factors.append(ratio)
    return factors


def stretch_to_duration(audio: AudioSegment, target_ms: int) -> AudioSegment:
    """Time-stretch audio to target_ms without changing pitch.

    Runs an ffmpeg atempo chain, then pads or trims the last few
    milliseconds the filter leaves over.
    """
    if target_ms <= 0:
        return audio[:0]
    if len(audio) == 0:
        return fit_length(audio, target_ms)

    ratio = len(audio) / target_ms
    if abs(ratio - 1.0) < STRETCH_SKIP_RATIO:
        return fit_length(audio, target_ms)

    with tempfile.NamedTemporaryFile(suffix=".wav", prefix="stretch-in-", delete=False) as handle:
        temp_in = handle.name
    with tempfile.NamedTemporaryFile(suffix=".wav", prefix="stretch-out-", delete=False) as handle:
        temp_out = handle.name

    filter_arg = ",".join(f"atempo={factor:.6f}" for factor in atempo_factors(ratio))
    command = [
        "ffmpeg", "-y",
        "-i", temp_in,
        "-filter:a", filter_arg,
        "-ar", str(audio.frame_rate),
        "-ac", str(audio.channels),
        temp_out,
    ]
    logger.debug("Stretching %dms -> %dms (%s)", len(audio), target_ms, filter_arg)

    try:
        audio.export(temp_in, format="wav")
        subprocess.run(command, check=True, capture_output=True)
        stretched = AudioSegment.from_file(temp_out, format="wav")
    finally:
        os.remove(temp_in)
        if os.path.exists(temp_out):
            os.remove(temp_out)

    return fit_length(stretched, target_ms)


def correct_duration(path: str, target_ms: int, policy: str = "stretch") -> int:
    """Force the clip at path to last target_ms, rewriting it in place.

    "stretch" always time-stretches. "normalize" only compresses clips that
    are too long and pads short ones with trailing silence.
    Returns the measured duration; raises DurationCorrectionError when it is
    still off by more than DURATION_TOLERANCE_MS.
    """
    if policy not in POLICIES:
        raise InputError(f"Unknown duration policy: {policy!r} (expected one of {', '.join(POLICIES)})")

    audio = AudioSegment.from_file(path)
    logger.debug("Correcting %s: %dms -> %dms (%s)", path, len(audio), target_ms, policy)

    if policy == "normalize" and len(audio) <= target_ms:
        corrected = fit_length(audio, target_ms)
    else:
        try:
            corrected = stretch_to_duration(audio, target_ms)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode("utf-8", "replace").strip()
            reason = stderr.splitlines()[-1] if stderr else f"ffmpeg exited with status {e.returncode}"
            raise DurationCorrectionError(path, target_ms, len(audio), reason) from e
        except FileNotFoundError as e:
            raise DurationCorrectionError(path, target_ms, len(audio), "ffmpeg not found") from e

    export_audio(corrected, path)
    return verify_duration(path, target_ms)


def verify_duration(path: str, target_ms: int, tolerance_ms: int = DURATION_TOLERANCE_MS) -> int:
    measured = get_duration(path)
    if abs(measured - target_ms) > tolerance_ms:
        raise DurationCorrectionError(path, target_ms, measured)
    return measured
