"""Path-addressed operations on a condition tree.

A path is the list of child indices leading from the root to a node; `[]` is
the root itself. Every operation copies the tree and returns the new root,
the input is never modified. Bulk operations apply their edits in descending
path order so that one edit never shifts a path that is still to be applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .factories import clone_with_fresh_ids, create_group_condition
from .model import Condition, GroupCondition, is_group

ConditionNodeT = Union[Condition, GroupCondition]
Path = Sequence[int]


class InvalidPathError(ValueError):
    pass


@dataclass(frozen=True)
class GroupEntry:
    path: tuple[int, ...]
    label: str


def _copy(root: GroupCondition) -> GroupCondition:
    return root.model_copy(deep=True)


def get_condition_at_path(root: GroupCondition, path: Path) -> Optional[ConditionNodeT]:
    current: ConditionNodeT = root
    for index in path:
        if not is_group(current) or not 0 <= index < len(current.conditions):
            return None
        current = current.conditions[index]
    return current


def _require_group(root: GroupCondition, path: Path) -> GroupCondition:
    node = get_condition_at_path(root, path)
    if node is None:
        raise InvalidPathError(f"Invalid path: condition not found at {list(path)}")
    if not is_group(node):
        raise InvalidPathError(f"Invalid path: {list(path)} is not a group")
    return node


def find_path(root: GroupCondition, node_id: str) -> Optional[tuple[int, ...]]:
    """Path of the first node (pre-order) with `node_id`."""
    if root.id == node_id:
        return ()
    for i, child in enumerate(root.conditions):
        if child.id == node_id:
            return (i,)
        if is_group(child):
            sub = find_path(child, node_id)
            if sub is not None:
                return (i,) + sub
    return None


def set_condition_at_path(root: GroupCondition, path: Path, node: ConditionNodeT) -> GroupCondition:
    if not path:
        if not is_group(node):
            raise InvalidPathError("The root must be a group")
        return node.model_copy(deep=True)
    result = _copy(root)
    parent = _require_group(result, path[:-1])
    index = path[-1]
    if not 0 <= index < len(parent.conditions):
        raise InvalidPathError(f"Invalid path: condition not found at {list(path)}")
    parent.conditions[index] = node
    return result


def insert_condition_at_path(root: GroupCondition, parent_path: Path, index: int, node: ConditionNodeT) -> GroupCondition:
    result = _copy(root)
    parent = _require_group(result, parent_path)
    index = min(max(0, index), len(parent.conditions))
    parent.conditions.insert(index, node)
    return result


def _descending(paths: Sequence[Path]) -> list[tuple[int, ...]]:
    return sorted({tuple(p) for p in paths}, reverse=True)


def remove_conditions_at_paths(root: GroupCondition, paths: Sequence[Path]) -> GroupCondition:
    result = _copy(root)
    for path in _descending(paths):
        if not path:
            continue  # the root cannot be removed
        parent = get_condition_at_path(result, path[:-1])
        if parent is not None and is_group(parent) and path[-1] < len(parent.conditions):
            del parent.conditions[path[-1]]
    return result


def duplicate_conditions_at_paths(root: GroupCondition, paths: Sequence[Path]) -> GroupCondition:
    originals = {p: get_condition_at_path(root, p) for p in _descending(paths) if p}
    result = _copy(root)
    for path, node in originals.items():
        if node is None:
            continue
        parent = _require_group(result, path[:-1])
        parent.conditions.insert(path[-1] + 1, clone_with_fresh_ids(node))
    return result


def move_conditions_to_path(
    root: GroupCondition,
    source_paths: Sequence[Path],
    target_path: Path,
    position: str,
) -> GroupCondition:
    """Move the nodes at `source_paths` before, after or inside the node at `target_path`.

    The target is tracked by id across the removal so sibling shifts do not
    misplace the insertion.
    """
    sources = [tuple(p) for p in source_paths if p]
    target_path = tuple(target_path)
    target = get_condition_at_path(root, target_path)
    if target is None:
        raise InvalidPathError(f"Invalid path: condition not found at {list(target_path)}")
    for src in sources:
        if target_path[: len(src)] == src:
            raise InvalidPathError("Cannot move a condition onto itself or into its own descendant")
    if position == "inside" and not is_group(target):
        raise InvalidPathError("Cannot insert inside non-group condition")

    moving = [get_condition_at_path(root, p) for p in sorted(set(sources))]
    moving = [n.model_copy(deep=True) for n in moving if n is not None]

    result = remove_conditions_at_paths(root, sources)
    new_target = find_path(result, target.id)
    if new_target is None:
        raise InvalidPathError("Target vanished while moving")

    if position == "inside":
        group = _require_group(result, new_target)
        group.conditions.extend(moving)
        return result

    if not new_target:
        raise InvalidPathError("Cannot insert next to the root")
    parent = _require_group(result, new_target[:-1])
    insert_at = new_target[-1] if position == "before" else new_target[-1] + 1
    parent.conditions[insert_at:insert_at] = moving
    return result


def group_conditions_at_paths(root: GroupCondition, paths: Sequence[Path], group_logic: str = "AND") -> GroupCondition:
    """Wrap sibling nodes in a new group placed where the first of them was."""
    unique = sorted({tuple(p) for p in paths})
    if len(unique) < 2:
        raise InvalidPathError("Need at least 2 conditions to group")
    parent_paths = {p[:-1] for p in unique}
    if len(parent_paths) != 1 or () in unique:
        raise InvalidPathError("Only sibling conditions can be grouped")

    members = [get_condition_at_path(root, p) for p in unique]
    if any(m is None for m in members):
        raise InvalidPathError("Invalid path: condition not found")

    parent_path = unique[0][:-1]
    insert_at = unique[0][-1]
    group = create_group_condition(group_logic, [m.model_copy(deep=True) for m in members])
    result = remove_conditions_at_paths(root, unique)
    return insert_condition_at_path(result, parent_path, insert_at, group)


def ungroup_conditions_at_paths(root: GroupCondition, paths: Sequence[Path]) -> GroupCondition:
    """Replace each addressed group by its children, in place."""
    result = _copy(root)
    for path in _descending(paths):
        if not path:
            continue
        node = get_condition_at_path(result, path)
        if node is None or not is_group(node):
            continue
        parent = _require_group(result, path[:-1])
        parent.conditions[path[-1]:path[-1] + 1] = node.conditions
    return result


def _swap(root: GroupCondition, path: Path, offset: int) -> GroupCondition:
    if not path:
        return root
    parent = get_condition_at_path(root, path[:-1])
    if parent is None or not is_group(parent):
        raise InvalidPathError(f"Invalid path: condition not found at {list(path)}")
    i, j = path[-1], path[-1] + offset
    if not (0 <= i < len(parent.conditions)) or not (0 <= j < len(parent.conditions)):
        return root
    result = _copy(root)
    siblings = _require_group(result, path[:-1]).conditions
    siblings[i], siblings[j] = siblings[j], siblings[i]
    return result


def move_up(root: GroupCondition, path: Path) -> GroupCondition:
    return _swap(root, path, -1)


def move_down(root: GroupCondition, path: Path) -> GroupCondition:
    return _swap(root, path, 1)


def get_all_groups(root: GroupCondition, current_path: tuple[int, ...] = ()) -> list[GroupEntry]:
    """Groups available as "move to group" targets; the root is excluded."""
    groups: list[GroupEntry] = []
    if current_path:
        groups.append(GroupEntry(current_path, f"{root.group_logic} Group ({len(root.conditions)} items)"))
    for i, child in enumerate(root.conditions):
        if is_group(child):
            groups.extend(get_all_groups(child, current_path + (i,)))
    return groups


def get_all_condition_paths(root: GroupCondition, current_path: tuple[int, ...] = ()) -> list[tuple[int, ...]]:
    paths: list[tuple[int, ...]] = []
    for i, child in enumerate(root.conditions):
        child_path = current_path + (i,)
        paths.append(child_path)
        if is_group(child):
            paths.extend(get_all_condition_paths(child, child_path))
    return paths
