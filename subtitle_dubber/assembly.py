"""Join fragments into the final track and lock it to the reference duration."""

import logging
import os

from subtitle_dubber.audio import concat, correct_duration, get_duration

logger = logging.getLogger(__name__)


def assemble(
    fragment_paths: list[str],
    reference_path: str,
    output_path: str,
    policy: str = "stretch",
) -> int:
    """Concatenate fragments in order, delete them, then match the reference.

    A single final correction removes the rounding drift that the
    per-fragment corrections leave behind. Returns the measured output
    duration in ms.
    """
    reference_ms = get_duration(reference_path)
    logger.info("Concatenating %d fragments into %s", len(fragment_paths), output_path)
    concat(fragment_paths, output_path)

    for path in fragment_paths:
        if os.path.exists(path):
            os.remove(path)

    assembled_ms = get_duration(output_path)
    logger.info("Syncing %dms to reference %dms", assembled_ms, reference_ms)
    return correct_duration(output_path, reference_ms, policy)
