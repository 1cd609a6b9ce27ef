"""JSON save and load for the game aggregate."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from .state import RoundState

__all__ = ["save_state", "load_state"]

logger = structlog.get_logger()


def save_state(path: str | Path, state: RoundState) -> Path:
    """Write ``state`` to ``path`` as JSON and return the path."""

    target = Path(path)
    target.write_text(json.dumps(state.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
    logger.debug("state saved", path=str(target), round_number=state.round_number)
    return target


def load_state(path: str | Path) -> RoundState:
    """Read a state previously written by :func:`save_state`."""

    source = Path(path)
    data = json.loads(source.read_text(encoding="utf-8"))
    state = RoundState.from_dict(data)
    logger.debug("state loaded", path=str(source), round_number=state.round_number)
    return state
