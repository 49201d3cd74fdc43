"""Condition trees for strategy signal nodes: model, preview formatting, clipboard and drag-and-drop edits."""

from .model import (
    COMPARISON_OPERATORS,
    EXPRESSION_TYPES,
    GROUP_LOGICS,
    OPERATORS,
    Condition,
    ConditionNode,
    Expression,
    GroupCondition,
    count_nodes,
    collect_ids,
    dump_group,
    dump_node,
    is_group,
    iter_nodes,
    parse_group,
    parse_nodes,
)
from .factories import (
    clone_node,
    clone_with_fresh_ids,
    create_condition,
    create_default_condition,
    create_default_expression,
    create_default_group_condition,
    create_group_condition,
    migrate_legacy_condition,
    migrate_legacy_group_condition,
)
from .formatter import (
    INCOMPLETE_CONDITIONS,
    NO_CONDITIONS,
    SETUP_INCOMPLETE,
    format_conditions,
    group_condition_to_string,
    is_diagnostic,
)
from .clipboard import ClipboardRegistry, ClipboardSnapshot, ConditionClipboard
from .dnd import (
    DragAndDropController,
    DragItem,
    DragState,
    DropPosition,
    DropResult,
    GroupIndex,
    move_condition,
    positional_group_id,
)
from .paths import InvalidPathError
from .builder import ConditionBuilder

__all__ = [
    "COMPARISON_OPERATORS",
    "EXPRESSION_TYPES",
    "GROUP_LOGICS",
    "OPERATORS",
    "Condition",
    "ConditionNode",
    "Expression",
    "GroupCondition",
    "count_nodes",
    "collect_ids",
    "dump_group",
    "dump_node",
    "is_group",
    "iter_nodes",
    "parse_group",
    "parse_nodes",
    "clone_node",
    "clone_with_fresh_ids",
    "create_condition",
    "create_default_condition",
    "create_default_expression",
    "create_default_group_condition",
    "create_group_condition",
    "migrate_legacy_condition",
    "migrate_legacy_group_condition",
    "INCOMPLETE_CONDITIONS",
    "NO_CONDITIONS",
    "SETUP_INCOMPLETE",
    "format_conditions",
    "group_condition_to_string",
    "is_diagnostic",
    "ClipboardRegistry",
    "ClipboardSnapshot",
    "ConditionClipboard",
    "DragAndDropController",
    "DragItem",
    "DragState",
    "DropPosition",
    "DropResult",
    "GroupIndex",
    "move_condition",
    "positional_group_id",
    "InvalidPathError",
    "ConditionBuilder",
]
