"""Render tasks into duration-exact audio fragments."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from pydub.exceptions import CouldntDecodeError

from subtitle_dubber.audio import correct_duration, generate_silence, verify_duration
from subtitle_dubber.constants import CAPACITY_RETRY_COUNT, CAPACITY_RETRY_DELAY
from subtitle_dubber.errors import DurationCorrectionError, ProviderCapacityError
from subtitle_dubber.models import Task, GAP
from subtitle_dubber.tts import SpeechProvider

logger = logging.getLogger(__name__)


def fragment_path(output_path: str, index: int) -> str:
    """Deterministic temp path for the index-th fragment of output_path.

    "out/talk.en.mp3", 3 → "out/talk.en.temp-3.mp3"
    """
    stem, ext = os.path.splitext(output_path)
    return f"{stem}.temp-{index}{ext}"


def synthesize_with_retry(
    provider: SpeechProvider,
    task: Task,
    output_path: str,
    attempts: int = CAPACITY_RETRY_COUNT,
    delay: float = CAPACITY_RETRY_DELAY,
) -> None:
    """Call the provider, waiting out capacity errors.

    Only ProviderCapacityError is retried, with a fixed delay, at most
    `attempts` times in total; the last one is re-raised. Anything else
    propagates on the first occurrence.
    """
    for attempt in range(attempts):
        try:
            provider.synthesize(task, output_path)
            return
        except ProviderCapacityError as e:
            if attempt == attempts - 1:
                raise
            logger.warning(
                "%s is out of capacity (attempt %d/%d), retrying in %.0fs: %s",
                provider.name, attempt + 1, attempts, delay, e.message,
            )
            time.sleep(delay)


def _fragment_ready(path: str, duration_ms: int) -> bool:
    """True when a fragment from an earlier run already has the right length."""
    if not os.path.exists(path) or os.path.getsize(path) == 0:
        return False
    try:
        verify_duration(path, duration_ms)
    except (DurationCorrectionError, CouldntDecodeError):
        return False
    return True


def execute_task(
    task: Task,
    output_path: str,
    provider: SpeechProvider,
    policy: str | None = None,
    resume: bool = False,
) -> str:
    """Produce one fragment of exactly task.duration_ms at output_path.

    Gap tasks become generated silence without touching the provider.
    Speech tasks are synthesized, then duration-corrected with `policy`
    (the provider's default when None).
    """
    if resume and _fragment_ready(output_path, task.duration_ms):
        logger.info("Reusing fragment %s", output_path)
        return output_path

    if task.type == GAP or task.duration_ms <= 0:
        logger.debug("Creating %dms of silence at %s", task.duration_ms, output_path)
        generate_silence(task.duration_ms, output_path)
        return output_path

    logger.debug("Synthesizing %dms with %s: %s", task.duration_ms, provider.name, task.text[:50])
    synthesize_with_retry(provider, task, output_path)
    correct_duration(output_path, task.duration_ms, policy or provider.default_policy)
    return output_path


def run_tasks(
    tasks: list[Task],
    output_path: str,
    provider: SpeechProvider,
    workers: int = 1,
    policy: str | None = None,
    resume: bool = False,
) -> list[str]:
    """Execute every task and return fragment paths in task order.

    Tasks run on a thread pool when workers > 1. The first failure cancels
    tasks that have not started yet and is re-raised; no partial result is
    returned.
    """
    paths = [fragment_path(output_path, i) for i in range(len(tasks))]
    total = len(tasks)

    if workers <= 1:
        for i, task in enumerate(tasks):
            print(f"  Generating fragment {i + 1}/{total} ({task.type}, {task.duration_ms}ms)")
            execute_task(task, paths[i], provider, policy=policy, resume=resume)
        return paths

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(execute_task, task, paths[i], provider, policy, resume)
            for i, task in enumerate(tasks)
        ]
        try:
            for done, future in enumerate(as_completed(futures), start=1):
                future.result()
                print(f"  Fragment {done}/{total} ready")
        except Exception:
            for future in futures:
                future.cancel()
            raise

    return paths
