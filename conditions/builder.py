"""Condition builder orchestration.

The tree is owned by the caller. The builder receives the current root and
reports every change through `update_conditions(new_root)`, one call per
operation; it keeps a reference to the latest root so successive calls compose.
Nested builders (one per nested group) report to their parent through
`parent_update_fn`, which replaces the nested group inside the parent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from config import BuilderConfig, get_builder_config

from .clipboard import ConditionClipboard
from .dnd import DropResult, GroupIndex, move_condition, positional_group_id
from .factories import (
    clone_with_fresh_ids,
    create_default_condition,
    create_default_group_condition,
)
from .formatter import format_conditions
from .model import GROUP_LOGICS, Condition, GroupCondition, is_group

logger = logging.getLogger(__name__)

ConditionNodeT = Union[Condition, GroupCondition]


class ConditionBuilder:
    def __init__(
        self,
        root: GroupCondition,
        update_conditions: Callable[[GroupCondition], None],
        *,
        context: str = "entry",
        level: int = 0,
        index: int = 0,
        parent_update_fn: Optional[Callable[[ConditionNodeT], None]] = None,
        clipboard: Optional[ConditionClipboard] = None,
        config: Optional[BuilderConfig] = None,
    ):
        self.root = root
        self.update_conditions = update_conditions
        self.context = context
        self.level = level
        self.index = index
        self.parent_update_fn = parent_update_fn
        self.clipboard = clipboard if clipboard is not None else ConditionClipboard()
        self.config = config or get_builder_config()

    @property
    def group_id(self) -> str:
        return positional_group_id(self.context, self.level, self.index)

    @property
    def is_root(self) -> bool:
        return self.level == 0

    def _commit(self, conditions: list[ConditionNodeT], **changes: Any) -> GroupCondition:
        updated = self.root.model_copy(update={"conditions": conditions, **changes})
        self.root = updated
        self.update_conditions(updated)
        return updated

    def add_condition(self) -> GroupCondition:
        return self._commit([*self.root.conditions, create_default_condition()])

    def add_group(self) -> GroupCondition:
        return self._commit([*self.root.conditions, create_default_group_condition()])

    def update_group_logic(self, value: str) -> GroupCondition:
        if value not in GROUP_LOGICS:
            raise ValueError(f"group logic must be one of {GROUP_LOGICS}, got {value!r}")
        return self._commit(list(self.root.conditions), group_logic=value)

    def update_child_condition(self, index: int, updated: ConditionNodeT) -> GroupCondition:
        conditions = list(self.root.conditions)
        conditions[index] = updated
        return self._commit(conditions)

    def remove_sibling(self, index: int) -> Optional[GroupCondition]:
        """Remove the child at `index`; refused when it is the last one."""
        if len(self.root.conditions) <= 1:
            return None
        conditions = list(self.root.conditions)
        del conditions[index]
        return self._commit(conditions)

    remove_condition = remove_sibling

    def duplicate_condition(self, index: int) -> GroupCondition:
        conditions = list(self.root.conditions)
        conditions.insert(index + 1, clone_with_fresh_ids(conditions[index]))
        return self._commit(conditions)

    def collapse_group_to_placeholder(self) -> Optional[Condition]:
        """Replace this nested group with a fresh placeholder leaf in its parent."""
        if self.parent_update_fn is None:
            return None
        placeholder = create_default_condition()
        self.parent_update_fn(placeholder)
        return placeholder

    remove_group = collapse_group_to_placeholder

    def copy_all(self) -> None:
        self.clipboard.copy(self.root.conditions)

    def paste(self) -> Optional[GroupCondition]:
        pasted = self.clipboard.paste()
        if not pasted:
            return None
        return self._commit([*self.root.conditions, *pasted])

    def handle_move(self, result: DropResult, index: Optional[GroupIndex] = None) -> Optional[GroupCondition]:
        """Apply a drop at the root; nested builders leave moves to the root."""
        if not self.is_root:
            logger.debug("Move delegated to root builder from %s", self.group_id)
            return None
        new_root = move_condition(
            self.root,
            result,
            context=self.context,
            index=index,
            on_target_missing=self.config.dnd.on_target_missing,
            compensate_shift=self.config.dnd.compensate_same_group_shift,
        )
        if new_root is self.root:
            return None
        self.root = new_root
        self.update_conditions(new_root)
        return new_root

    def child(self, index: int) -> "ConditionBuilder":
        """Builder for the nested group at `index`, wired back into this one."""
        node = self.root.conditions[index]
        if not is_group(node):
            raise ValueError(f"condition at index {index} is not a group")

        def update_child(updated: ConditionNodeT) -> None:
            self.update_child_condition(index, updated)

        return ConditionBuilder(
            node,
            update_child,
            context=self.context,
            level=self.level + 1,
            index=index,
            parent_update_fn=update_child,
            clipboard=self.clipboard,
            config=self.config,
        )

    def preview(self, start_node: Optional[Mapping[str, Any]] = None) -> str:
        return format_conditions(
            self.root, start_node, strict_nested=self.config.formatter.strict_nested_completeness
        )
