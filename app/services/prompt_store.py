"""Prompt catalog loaded from ``app/prompts/prompts.json``.

Nested JSON objects are flattened into dotted keys
(``outline.master_strategy.system``). Long prompts are stored as arrays of
lines. Placeholders use ``string.Template`` syntax (``$keyword``).
"""
from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Any

PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


def _flatten(node: Any, prefix: str, out: dict[str, Template]) -> None:
    if isinstance(node, dict):
        for name, child in node.items():
            _flatten(child, f"{prefix}.{name}" if prefix else name, out)
    elif isinstance(node, str):
        out[prefix] = Template(node)
    elif isinstance(node, list) and all(isinstance(line, str) for line in node):
        out[prefix] = Template("\n".join(node))
    else:
        raise TypeError(f"Prompt {prefix!r} must be a string or a list of lines")


@lru_cache(maxsize=1)
def _templates() -> dict[str, Template]:
    catalog = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
    if not isinstance(catalog, dict):
        raise ValueError("Prompt catalog must be a JSON object.")
    templates: dict[str, Template] = {}
    _flatten(catalog, "", templates)
    return templates


def render_prompt(key: str, **values: Any) -> str:
    try:
        template = _templates()[key]
    except KeyError:
        raise KeyError(f"Prompt key not found: {key}") from None
    try:
        return template.substitute(**values)
    except KeyError as exc:
        raise KeyError(f"Missing template value {exc.args[0]!r} for prompt {key!r}") from exc
