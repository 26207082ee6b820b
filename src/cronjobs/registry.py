"""Callback registry — explicit capability map from dotted names to callables.

Jobs only store a dotted name (``"reports.daily"``). At run time the name is
resolved through a :class:`CallbackRegistry` that the host application fills
in, so nothing outside the registered targets is reachable.

Usage::

    registry = CallbackRegistry()

    @registry.register("reports.daily")
    def daily_report(job): ...

    registry.register_module("myapp.tasks")  # "myapp.tasks.cleanup" now resolves
"""

from __future__ import annotations

import importlib
import logging
import re
from collections.abc import Callable, Mapping
from types import ModuleType
from typing import Any

from cronjobs.errors import ResolutionError, SecurityError, ValidationError

logger = logging.getLogger(__name__)

# Attribute values that can never be walked into or invoked
_SCALARS = (str, bytes, int, float, complex, bool)
_MISSING: Any = object()


def normalize_callback(path: str) -> str:
    """Strip whitespace, collapse repeated dots, trim leading/trailing dots."""
    path = re.sub(r"\s+", "", path)
    path = re.sub(r"\.+", ".", path)
    return path.strip(".")


def is_protected(segment: str) -> bool:
    """Segments starting or ending with ``_`` are never reachable."""
    return segment.startswith("_") or segment.endswith("_")


def protected_segments(path: str) -> list[str]:
    return [segment for segment in path.split(".") if is_protected(segment)]


class CallbackRegistry:
    """Maps dotted names to callables or to namespaces holding them."""

    def __init__(self, targets: Mapping[str, Any] | None = None) -> None:
        self._targets: dict[str, Any] = {}
        for path, target in (targets or {}).items():
            self.register(path, target)

    def register(self, path: str, target: Any = _MISSING) -> Any:
        """Register ``target`` under ``path``.

        Without ``target`` this returns a decorator. ``target`` may be a
        callable or any object whose attributes should be reachable as
        sub-paths (a module, a class, an instance).

        Raises:
            ValidationError: If ``path`` is empty after normalization or
                ``target`` is ``None``.
            SecurityError: If a segment starts or ends with ``_``.
        """
        if target is _MISSING:

            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self.register(path, func)
                return func

            return decorator

        key = normalize_callback(path)
        if not key:
            msg = f"Callback path '{path}' is empty"
            raise ValidationError(msg)
        if target is None:
            msg = f"Cannot register '{key}': target is None"
            raise ValidationError(msg)
        forbidden = protected_segments(key)
        if forbidden:
            msg = f"Cannot register '{key}': segment '{forbidden[0]}' is protected"
            raise SecurityError(msg)

        self._targets[key] = target
        logger.debug("Registered callback target '%s'", key)
        return target

    def register_module(self, module_name: str) -> ModuleType:
        """Import ``module_name`` and register it under its dotted name."""
        module = importlib.import_module(module_name)
        self.register(module_name, module)
        logger.info("Registered callback module '%s'", module_name)
        return module

    def unregister(self, path: str) -> bool:
        return self._targets.pop(normalize_callback(path), None) is not None

    @property
    def names(self) -> list[str]:
        return sorted(self._targets)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        try:
            self.resolve(path)
        except (ResolutionError, SecurityError):
            return False
        return True

    def resolve(self, path: str) -> Callable[..., Any]:
        """Resolve a dotted path to a callable.

        The longest registered prefix is looked up first; remaining segments
        are walked with attribute access.

        Raises:
            SecurityError: If any segment starts or ends with ``_``.
            ResolutionError: If a segment is missing, is a plain value, or
                the final target is not callable.
        """
        parts = normalize_callback(path).split(".")

        for index, part in enumerate(parts):
            if is_protected(part):
                reached = ".".join(parts[:index]) or "<root>"
                msg = f"Segment '{part}' under '{reached}' is protected"
                raise SecurityError(msg)

        for end in range(len(parts), 0, -1):
            prefix = ".".join(parts[:end])
            if prefix in self._targets:
                cursor = self._targets[prefix]
                break
        else:
            msg = f"No callback registered for '{parts[0]}'"
            raise ResolutionError(msg)

        walked = parts[:end]
        for part in parts[end:]:
            cursor = getattr(cursor, part, None)
            if cursor is None or isinstance(cursor, _SCALARS):
                msg = f"'{part}' not found in '{'.'.join(walked)}'"
                raise ResolutionError(msg)
            walked.append(part)

        if not callable(cursor):
            msg = f"'{'.'.join(parts)}' is not callable"
            raise ResolutionError(msg)
        return cursor
