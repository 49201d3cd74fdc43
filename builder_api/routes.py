"""
FastAPI router for condition builder endpoints: preview, move, builder
operations and per-scope clipboard.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from conditions.builder import ConditionBuilder
from conditions.dnd import DropResult, move_condition
from conditions.formatter import (
    INCOMPLETE_CONDITIONS,
    NO_CONDITIONS,
    SETUP_INCOMPLETE,
    format_conditions,
    is_diagnostic,
)
from conditions.model import (
    EXPRESSION_TYPES,
    GROUP_LOGICS,
    OPERATORS,
    GroupCondition,
    dump_group,
    dump_node,
    is_group,
    parse_group,
)
from conditions import paths

logger = logging.getLogger(__name__)

router = APIRouter()

_PATH_OPERATIONS = ("group", "ungroup", "move_up", "move_down")
_BUILDER_OPERATIONS = (
    "add_condition",
    "add_group",
    "update_group_logic",
    "remove_condition",
    "duplicate_condition",
    "paste",
)


async def _read_json(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except Exception:
        raise HTTPException(status_code=400, detail={"ok": False, "message": "Invalid JSON"})
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail={"ok": False, "message": "Expected a JSON object"})
    return payload


def _unprocessable(message: str, errors: list[dict[str, Any]] | None = None) -> JSONResponse:
    body: dict[str, Any] = {"ok": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(body, status_code=422)


def _validation_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [{"path": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg", "")} for e in exc.errors()]


def _parse_root(payload: dict[str, Any]) -> GroupCondition:
    raw = payload.get("root")
    if not isinstance(raw, dict):
        raise ValueError("'root' must be a condition group object")
    return parse_group(raw)


@router.get("/api/conditions/metadata")
async def metadata(request: Request) -> JSONResponse:
    if not getattr(request.app.state, "expose_metadata", True):
        return JSONResponse({"ok": False, "message": "Metadata disabled"}, status_code=404)
    return JSONResponse(
        {
            "ok": True,
            "data": {
                "operators": list(OPERATORS),
                "group_logics": list(GROUP_LOGICS),
                "expression_types": list(EXPRESSION_TYPES),
                "diagnostics": [NO_CONDITIONS, INCOMPLETE_CONDITIONS, SETUP_INCOMPLETE],
            },
        }
    )


@router.post("/api/conditions/preview")
async def preview(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    strict = payload.get("strict_nested")
    text = format_conditions(
        payload.get("root"),
        payload.get("context") if isinstance(payload.get("context"), dict) else None,
        strict_nested=None if strict is None else bool(strict),
    )
    return JSONResponse({"ok": True, "text": text, "is_diagnostic": is_diagnostic(text)})


@router.post("/api/conditions/move")
async def move(request: Request) -> JSONResponse:
    payload = await _read_json(request)
    try:
        root = _parse_root(payload)
        drop = DropResult.from_dict(payload.get("drop") or {})
    except ValidationError as e:
        return _unprocessable("Invalid condition tree", _validation_errors(e))
    except (KeyError, TypeError, ValueError) as e:
        return _unprocessable(f"Invalid move request: {e}")

    context = str(payload.get("context") or "entry")
    new_root = move_condition(root, drop, context=context)
    moved = new_root is not root
    logger.info("Move %s -> %s (%s): moved=%s", drop.source_group_id, drop.target_group_id, drop.position.value, moved)
    return JSONResponse({"ok": True, "moved": moved, "root": dump_group(new_root)})


def _apply_path_operation(root: GroupCondition, operation: str, payload: dict[str, Any]) -> GroupCondition:
    if operation == "group":
        return paths.group_conditions_at_paths(root, payload.get("paths") or [], payload.get("value") or "AND")
    if operation == "ungroup":
        return paths.ungroup_conditions_at_paths(root, payload.get("paths") or [])
    target = payload.get("target") or []
    if operation == "move_up":
        return paths.move_up(root, target)
    return paths.move_down(root, target)


def _apply_builder_operation(request: Request, root: GroupCondition, operation: str, payload: dict[str, Any]) -> GroupCondition:
    group_path = tuple(payload.get("path") or ())
    group = paths.get_condition_at_path(root, group_path)
    if group is None or not is_group(group):
        raise paths.InvalidPathError(f"No group at path {list(group_path)}")

    clipboard = None
    if payload.get("scope"):
        clipboard = request.app.state.clipboards.get(str(payload["scope"]))
    elif operation == "paste":
        raise ValueError("'scope' is required to paste")

    captured: list[GroupCondition] = []
    builder = ConditionBuilder(group, captured.append, clipboard=clipboard, config=request.app.state.builder_config)

    if operation == "add_condition":
        builder.add_condition()
    elif operation == "add_group":
        builder.add_group()
    elif operation == "update_group_logic":
        builder.update_group_logic(str(payload.get("value")))
    elif operation == "remove_condition":
        builder.remove_sibling(int(payload["index"]))
    elif operation == "duplicate_condition":
        builder.duplicate_condition(int(payload["index"]))
    elif operation == "paste":
        builder.paste()

    if not captured:
        return root
    return paths.set_condition_at_path(root, group_path, captured[-1]) if group_path else captured[-1]


@router.post("/api/conditions/builder/{operation}")
async def builder_operation(operation: str, request: Request) -> JSONResponse:
    if operation not in _BUILDER_OPERATIONS and operation not in _PATH_OPERATIONS:
        raise HTTPException(status_code=404, detail={"ok": False, "message": f"Unknown operation: {operation}"})
    payload = await _read_json(request)
    try:
        root = _parse_root(payload)
        if operation in _PATH_OPERATIONS:
            new_root = _apply_path_operation(root, operation, payload)
        else:
            new_root = _apply_builder_operation(request, root, operation, payload)
    except ValidationError as e:
        return _unprocessable("Invalid condition tree", _validation_errors(e))
    except (KeyError, IndexError, TypeError, ValueError) as e:
        return _unprocessable(str(e))

    return JSONResponse({"ok": True, "changed": new_root is not root, "root": dump_group(new_root)})


@router.post("/api/conditions/clipboard/{scope}/copy")
async def clipboard_copy(scope: str, request: Request) -> JSONResponse:
    payload = await _read_json(request)
    conditions = payload.get("conditions")
    if not isinstance(conditions, list):
        return _unprocessable("'conditions' must be a list")
    try:
        request.app.state.clipboards.get(scope).copy(conditions)
    except ValidationError as e:
        return _unprocessable("Invalid conditions", _validation_errors(e))
    return JSONResponse({"ok": True, "count": len(conditions)})


@router.post("/api/conditions/clipboard/{scope}/paste")
async def clipboard_paste(scope: str, request: Request) -> JSONResponse:
    pasted = request.app.state.clipboards.get(scope).paste()
    return JSONResponse({"ok": True, "conditions": None if pasted is None else [dump_node(n) for n in pasted]})


@router.get("/api/conditions/clipboard/{scope}")
async def clipboard_status(scope: str, request: Request) -> JSONResponse:
    snapshot = request.app.state.clipboards.get(scope).clipboard_data
    return JSONResponse(
        {
            "ok": True,
            "has_data": snapshot is not None,
            "timestamp": snapshot.timestamp.isoformat() if snapshot else None,
        }
    )
