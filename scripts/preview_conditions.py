#!/usr/bin/env python3

"""Print the preview string of a condition tree stored as YAML or JSON.

Example:
  python3 scripts/preview_conditions.py --file examples/entry.yml --context examples/start_node.yml
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from conditions.formatter import format_conditions, is_diagnostic
from conditions.model import count_nodes, parse_group
from config import configure_logging, load_builder_config

logger = logging.getLogger(__name__)


def _load(path: Path):
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def main() -> int:
    p = argparse.ArgumentParser(description="Render a condition tree as a boolean expression")
    p.add_argument("--file", required=True, help="Path to the root condition group (YAML or JSON)")
    p.add_argument("--context", help="Optional start-node configuration used to resolve indicator names")
    p.add_argument("--config", help="Optional builder config override YAML")
    p.add_argument("--strict", action="store_true", help="Also check leaves inside nested groups")
    p.add_argument("--summary", action="store_true", help="Print node count as JSON before the preview")
    args = p.parse_args()

    config = load_builder_config(args.config)
    configure_logging(config.logging)

    root = _load(Path(args.file))
    context = _load(Path(args.context)) if args.context else None
    if isinstance(root, dict) and "root" in root:
        root = root["root"]

    if args.summary and isinstance(root, dict):
        try:
            print(json.dumps({"nodes": count_nodes(parse_group(root))}, sort_keys=True))
        except ValueError:
            logger.warning("Tree does not validate; skipping summary")

    strict = True if args.strict else config.formatter.strict_nested_completeness
    text = format_conditions(root, context, strict_nested=strict)
    print(text)
    return 1 if is_diagnostic(text) else 0


if __name__ == "__main__":
    raise SystemExit(main())
