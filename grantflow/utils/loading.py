"""Resolve ``module:attribute`` import strings."""

from __future__ import annotations

import importlib
from typing import Any

from ..errors import ConfigError


def import_string(target: str) -> Any:
    """Import and return the object referenced by ``target``.

    Accepts ``package.module:attr`` or the dotted ``package.module.attr`` form.
    Nested attributes are allowed after the colon (``module:Class.factory``).
    """
    if ":" in target:
        module_name, _, attr_path = target.partition(":")
    else:
        module_name, _, attr_path = target.rpartition(".")
    if not module_name or not attr_path:
        raise ConfigError(f"Invalid import string: {target!r}")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import module '{module_name}': {e}") from e

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from e
    return obj
