"""Copy/paste of condition subtrees.

One `ConditionClipboard` serves one provider scope (a builder session or
top-level tree), never the whole process. Both copy and paste regenerate ids
at every level, so pasted subtrees can sit next to the source and to each
other without id collisions.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Union

from .factories import clone_with_fresh_ids
from .model import Condition, GroupCondition, parse_nodes

logger = logging.getLogger(__name__)

ConditionNodeT = Union[Condition, GroupCondition]


@dataclass(frozen=True)
class ClipboardSnapshot:
    """Immutable copy captured at copy time."""
    conditions: tuple[ConditionNodeT, ...]
    timestamp: datetime


class ConditionClipboard:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Optional[ClipboardSnapshot] = None

    def copy(self, conditions: Iterable[Union[ConditionNodeT, dict[str, Any]]]) -> None:
        nodes = tuple(clone_with_fresh_ids(n) for n in parse_nodes(list(conditions)))
        snapshot = ClipboardSnapshot(conditions=nodes, timestamp=datetime.now(timezone.utc))
        with self._lock:
            self._snapshot = snapshot
        logger.debug("Copied %d condition(s) to clipboard", len(nodes))

    def paste(self) -> Optional[list[ConditionNodeT]]:
        """Fresh deep copy of the stored nodes, or None when nothing was copied."""
        with self._lock:
            snapshot = self._snapshot
        if snapshot is None:
            return None
        return [clone_with_fresh_ids(n) for n in snapshot.conditions]

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None

    @property
    def has_data(self) -> bool:
        with self._lock:
            return self._snapshot is not None

    @property
    def clipboard_data(self) -> Optional[ClipboardSnapshot]:
        with self._lock:
            return self._snapshot


class ClipboardRegistry:
    """Clipboards keyed by provider scope, least recently used evicted first."""

    def __init__(self, max_scopes: int = 256) -> None:
        self._lock = threading.Lock()
        self._max_scopes = max_scopes
        self._clipboards: "OrderedDict[str, ConditionClipboard]" = OrderedDict()

    def get(self, scope: str) -> ConditionClipboard:
        with self._lock:
            clipboard = self._clipboards.get(scope)
            if clipboard is None:
                clipboard = ConditionClipboard()
                self._clipboards[scope] = clipboard
                while len(self._clipboards) > self._max_scopes:
                    evicted, _ = self._clipboards.popitem(last=False)
                    logger.info("Evicted clipboard scope %s", evicted)
            else:
                self._clipboards.move_to_end(scope)
            return clipboard

    def drop(self, scope: str) -> bool:
        with self._lock:
            return self._clipboards.pop(scope, None) is not None

    def __contains__(self, scope: str) -> bool:
        with self._lock:
            return scope in self._clipboards

    def __len__(self) -> int:
        with self._lock:
            return len(self._clipboards)
