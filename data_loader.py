"""YAML data files used by page objects (hidden-element selector tables)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

LOGGER = logging.getLogger("qa.data")


def read_map_from_yaml(path: str | Path) -> dict[str, Any]:
    """Parse a YAML document whose root is a mapping.

    An empty document yields an empty dict; any other non-mapping root is
    rejected with ValueError.
    """

    source = Path(path)
    with source.open(encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        LOGGER.warning("yaml_empty", extra={"path": str(source)})
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a mapping at the root of {source}, got {type(data).__name__}")
    return dict(data)


def flatten(mapping: Mapping[Any, Any], sep: str = ".") -> dict[str, Any]:
    """Flatten nested mappings into `a.b.c` keys; lists and scalars are leaves."""

    flat: dict[str, Any] = {}

    def _walk(node: Mapping[Any, Any], prefix: str) -> None:
        for key, value in node.items():
            path = f"{prefix}{sep}{key}" if prefix else str(key)
            if isinstance(value, Mapping):
                _walk(value, path)
            else:
                flat[path] = value

    _walk(mapping, "")
    return flat
