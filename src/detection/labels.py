"""
Label file loading.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple, Union

from .errors import LabelLoadError


def load_labels(path: Union[str, Path]) -> Tuple[str, ...]:
    """
    Read class labels, one per line.

    Reading stops at the first empty line, so trailing blank lines and
    anything after them are ignored. The index of a label is its class id.

    Raises:
        LabelLoadError: If the file cannot be read or contains no labels.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LabelLoadError(f"Failed to read labels from {path}: {e}") from e

    labels = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            break
        labels.append(line)

    if not labels:
        raise LabelLoadError(f"No labels found in {path}")

    logging.info(f"Loaded {len(labels)} labels from {path}")
    return tuple(labels)
