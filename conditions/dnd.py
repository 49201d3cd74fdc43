"""Drag-and-drop re-ordering and re-parenting of conditions.

A drop is described by a `DropResult`: the group and index the item was
dragged from, the group and index it was dropped on, and whether it lands
before, after or inside the target. Groups are addressed either by their
stable `id` or by the positional id the renderer derives from
`(context, level, sibling index)`; `GroupIndex` maps both to tree paths and is
rebuilt once per drag start.

`move_condition` is copy-on-write: it works on a deep copy and returns the
new root, or the untouched input root when the move is aborted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from config import get_builder_config

from .model import Condition, GroupCondition, is_group
from .paths import get_condition_at_path

logger = logging.getLogger(__name__)

ConditionNodeT = Union[Condition, GroupCondition]


class DropPosition(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    INSIDE = "inside"


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DropTargetNotFound(LookupError):
    pass


@dataclass(frozen=True)
class DragItem:
    id: str
    index: int
    group_id: str
    condition: Optional[ConditionNodeT] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DragItem":
        return cls(
            id=str(data.get("id", "")),
            index=int(data["index"]),
            group_id=str(data.get("groupId", data.get("group_id"))),
            condition=data.get("condition"),
        )


@dataclass(frozen=True)
class DropResult:
    source_group_id: str
    source_index: int
    target_group_id: str
    target_index: int
    position: DropPosition = DropPosition.AFTER

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", DropPosition(self.position))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DropResult":
        """Accepts the camelCase payload emitted by the editor."""

        def pick(camel: str, snake: str) -> Any:
            return data[camel] if camel in data else data[snake]

        return cls(
            source_group_id=str(pick("sourceGroupId", "source_group_id")),
            source_index=int(pick("sourceIndex", "source_index")),
            target_group_id=str(pick("targetGroupId", "target_group_id")),
            target_index=int(pick("targetIndex", "target_index")),
            position=DropPosition(data.get("position") or DropPosition.AFTER.value),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceGroupId": self.source_group_id,
            "sourceIndex": self.source_index,
            "targetGroupId": self.target_group_id,
            "targetIndex": self.target_index,
            "position": self.position.value,
        }

    @property
    def is_self_drop(self) -> bool:
        return self.source_group_id == self.target_group_id and self.source_index == self.target_index


def positional_group_id(context: str, level: int, index: int) -> str:
    return f"{context}-{level}-{index}"


@dataclass
class GroupIndex:
    """Lookup from group ids (stable and positional) to tree paths."""
    by_id: dict[str, tuple[int, ...]] = field(default_factory=dict)
    by_position: dict[str, tuple[int, ...]] = field(default_factory=dict)

    @classmethod
    def build(cls, root: GroupCondition, context: str = "entry") -> "GroupIndex":
        index = cls()
        index._visit(root, context, level=0, sibling_index=0, path=())
        return index

    def _visit(self, group: GroupCondition, context: str, level: int, sibling_index: int, path: tuple[int, ...]) -> None:
        self.by_id.setdefault(group.id, path)
        # Positional ids repeat across parents; the first in pre-order wins.
        self.by_position.setdefault(positional_group_id(context, level, sibling_index), path)
        for i, child in enumerate(group.conditions):
            if is_group(child):
                self._visit(child, context, level + 1, i, path + (i,))

    def resolve(self, group_id: str) -> Optional[tuple[int, ...]]:
        if group_id in self.by_id:
            return self.by_id[group_id]
        return self.by_position.get(group_id)

    def __contains__(self, group_id: str) -> bool:
        return self.resolve(group_id) is not None


def _relocate_after_removal(
    target: tuple[int, ...], source_parent: tuple[int, ...], source_index: int
) -> tuple[int, ...]:
    """Path of `target` once the child `source_index` of `source_parent` has been removed."""
    removed = source_parent + (source_index,)
    if target[: len(removed)] == removed:
        raise DropTargetNotFound("Target group lies inside the dragged item")
    depth = len(source_parent)
    if len(target) > depth and target[:depth] == source_parent and target[depth] > source_index:
        return target[:depth] + (target[depth] - 1,) + target[depth + 1:]
    return target


def move_condition(
    root: GroupCondition,
    result: DropResult,
    *,
    context: str = "entry",
    index: Optional[GroupIndex] = None,
    on_target_missing: Optional[str] = None,
    compensate_shift: Optional[bool] = None,
) -> GroupCondition:
    """Apply a completed drop to `root`.

    Returns a new root, or `root` itself when nothing moved (self drop, stale
    source, or a missing target under the default "abort" policy). With
    `on_target_missing="drop"` a missing target removes the item without
    reinserting it.
    """
    if result.is_self_drop:
        return root

    cfg = get_builder_config().dnd
    policy = on_target_missing or cfg.on_target_missing
    compensate = cfg.compensate_same_group_shift if compensate_shift is None else compensate_shift
    index = index or GroupIndex.build(root, context)
    logger.debug("Move requested: %s", result.to_dict())

    source_path = index.resolve(result.source_group_id)
    if source_path is None:
        logger.warning("Could not find source group %s", result.source_group_id)
        return root

    new_root = root.model_copy(deep=True)
    source_group = get_condition_at_path(new_root, source_path)
    if source_group is None or not is_group(source_group) or not 0 <= result.source_index < len(source_group.conditions):
        logger.warning("Could not find source item %s[%d]", result.source_group_id, result.source_index)
        return root
    item = source_group.conditions.pop(result.source_index)

    try:
        target_path = index.resolve(result.target_group_id)
        if target_path is None:
            raise DropTargetNotFound(f"Unknown target group {result.target_group_id}")
        target_path = _relocate_after_removal(target_path, source_path, result.source_index)
        target_group = get_condition_at_path(new_root, target_path)
        if target_group is None or not is_group(target_group):
            raise DropTargetNotFound(f"Target group {result.target_group_id} is gone")
    except DropTargetNotFound as exc:
        if policy == "drop":
            logger.warning("%s; dragged item %s dropped", exc, item.id)
            return new_root
        logger.warning("%s; move aborted", exc)
        return root

    target_index = result.target_index
    if compensate and target_path == source_path and result.source_index < target_index:
        target_index -= 1

    siblings = target_group.conditions
    if (
        result.position == DropPosition.INSIDE
        and 0 <= target_index < len(siblings)
        and is_group(siblings[target_index])
    ):
        siblings[target_index].conditions.append(item)
        return new_root

    insert_at = min(max(0, target_index), len(siblings))
    if result.position == DropPosition.AFTER:
        insert_at = min(insert_at + 1, len(siblings))
    siblings.insert(insert_at, item)
    return new_root


def drop_position_from_id(over_id: str) -> DropPosition:
    """Droppable zones are suffixed `-before`, `-after` or `-inside`."""
    text = str(over_id)
    if "-before" in text:
        return DropPosition.BEFORE
    if "-after" in text:
        return DropPosition.AFTER
    if "-inside" in text:
        return DropPosition.INSIDE
    return DropPosition.AFTER


class DragAndDropController:
    """State of a single drag gesture: Idle -> Dragging -> Idle.

    Holds only gesture state; the tree itself is never touched here. On a
    valid drop `drag_end` hands a `DropResult` to the `on_move` callback.
    """

    def __init__(self, activation_distance: Optional[int] = None):
        if activation_distance is None:
            activation_distance = get_builder_config().dnd.activation_distance
        self.activation_distance = activation_distance
        self.state = DragState.IDLE
        self.active_item: Optional[DragItem] = None
        self.over_id: Optional[str] = None
        self.pointer: Optional[tuple[float, float]] = None

    @property
    def is_dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def activates(self, origin: tuple[float, float], pointer: tuple[float, float]) -> bool:
        """Whether pointer travel from `origin` is enough to start a drag."""
        return math.dist(origin, pointer) >= self.activation_distance

    def drag_start(self, item: Union[DragItem, Mapping[str, Any]]) -> None:
        self.active_item = item if isinstance(item, DragItem) else DragItem.from_dict(item)
        self.state = DragState.DRAGGING
        self.over_id = None
        self.pointer = None

    def drag_over(self, over_id: Optional[str], pointer: Optional[tuple[float, float]] = None) -> None:
        if not self.is_dragging:
            return
        self.over_id = over_id
        if pointer is not None:
            self.pointer = pointer

    def drag_end(
        self,
        over_id: Optional[str],
        over_data: Optional[Mapping[str, Any]],
        on_move: Callable[[DropResult], None],
    ) -> Optional[DropResult]:
        """Finish the gesture; returns the DropResult passed to `on_move`, if any."""
        source = self.active_item
        try:
            if source is None or over_id is None or not over_data:
                return None
            target_group_id = over_data.get("groupId", over_data.get("group_id"))
            target_index = over_data.get("index")
            if target_group_id is None or target_index is None:
                return None
            result = DropResult(
                source_group_id=source.group_id,
                source_index=source.index,
                target_group_id=str(target_group_id),
                target_index=int(target_index),
                position=drop_position_from_id(over_id),
            )
            if result.is_self_drop:
                return None
            on_move(result)
            return result
        finally:
            self._reset()

    def drag_cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.active_item = None
        self.over_id = None
        self.pointer = None
