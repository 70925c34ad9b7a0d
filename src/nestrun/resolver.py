"""Executable lookup on the host search path."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from loguru import logger

from .types import ResolvedBinary


def resolve_binary(name: str, search_path: str | None = None) -> ResolvedBinary:
    """Return the first executable called ``name`` on ``search_path``.

    ``search_path`` defaults to ``$PATH``. A missing binary is reported
    through ``ResolvedBinary.found`` rather than an exception.
    """
    found = shutil.which(name, path=search_path)
    if found is None:
        logger.debug("binary {!r} not found on search path", name)
        return ResolvedBinary(name=name, absolute_path=None)
    path = Path(os.path.abspath(found))
    logger.debug("resolved {!r} to {}", name, path)
    return ResolvedBinary(name=name, absolute_path=path)
