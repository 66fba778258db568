"""Saving generated images to disk."""

import time
from pathlib import Path

from loguru import logger


def save_artifact(artifact, output_dir):
    """Writes one artifact to `output_dir` under its own file name.

    Returns:
        Path: The path of the written file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / artifact.filename
    path.write_bytes(artifact.data)
    return path


def save_all(artifacts, output_dir, delay=0.2):
    """Saves artifacts one by one, in order, pausing between files.

    Args:
        artifacts (Sequence[GeneratedArtifact]): The artifacts to save.
        output_dir (str | Path): The destination folder.
        delay (float, optional): Seconds to wait between two files.

    Returns:
        list[Path]: The written paths, in artifact order.
    """
    paths = []
    for i, artifact in enumerate(artifacts):
        if i > 0 and delay > 0:
            time.sleep(delay)
        paths.append(save_artifact(artifact, output_dir))
    logger.info(f"Saved {len(paths)} images to {output_dir}")
    return paths
