"""Runtime logging helpers."""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from typing import Any

from loguru import logger
from pydantic import BaseModel

_DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | {message}"
_CONFIGURED_LEVEL: str | None = None


def configure_logging(*, level: str = "INFO") -> None:
    """Configure process-level logging once per level."""

    global _CONFIGURED_LEVEL
    level = level.upper()
    if level == _CONFIGURED_LEVEL:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=_DEFAULT_FORMAT,
        backtrace=False,
        diagnose=False,
    )
    _CONFIGURED_LEVEL = level


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if hasattr(value, "__dict__"):
        return {key: item for key, item in vars(value).items() if not key.startswith("_")}
    return str(value)


def stringify(root: Any, *exclude: str) -> str:
    """Render a mapping or object as indented JSON for debug logs.

    Keys listed in ``exclude`` are masked, values that cannot be encoded are
    replaced by a short marker instead of failing the dump.
    """

    excluded = set(exclude)
    source: Mapping[str, Any] = root if isinstance(root, Mapping) else vars(root)
    filtered: dict[str, Any] = {}
    for key, value in source.items():
        if key in excluded:
            filtered[key] = "[Excluded]"
            continue
        try:
            json.dumps(value, default=_to_jsonable)
        except ValueError as exc:
            filtered[key] = "[Circular]" if "Circular" in str(exc) else f"[Stringify Error] {exc}"
            continue
        filtered[key] = value
    return json.dumps(filtered, indent=2, default=_to_jsonable)
