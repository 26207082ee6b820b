"""Tests for CallbackRegistry and callback path helpers."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from cronjobs.errors import ResolutionError, SecurityError, ValidationError
from cronjobs.registry import CallbackRegistry, normalize_callback, protected_segments


class TestNormalizeCallback:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("reports.daily", "reports.daily"),
            (" reports . daily ", "reports.daily"),
            ("reports..daily", "reports.daily"),
            ("..reports...daily..", "reports.daily"),
            ("\treports.\ndaily", "reports.daily"),
            ("...", ""),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_callback(raw) == expected

    def test_protected_segments(self) -> None:
        assert protected_segments("a._b.c_.d") == ["_b", "c_"]
        assert protected_segments("a.b_c.d") == []


class TestRegister:
    def test_register_and_resolve(self) -> None:
        registry = CallbackRegistry()
        func = MagicMock()
        registry.register("reports.daily", func)
        assert registry.resolve("reports.daily") is func

    def test_register_as_decorator(self) -> None:
        registry = CallbackRegistry()

        @registry.register("ping")
        def ping(job: object) -> str:
            return "pong"

        assert registry.resolve("ping") is ping
        assert ping(None) == "pong"

    def test_constructor_mapping(self) -> None:
        func = MagicMock()
        registry = CallbackRegistry({"a.b": func})
        assert registry.names == ["a.b"]
        assert registry.resolve("a.b") is func

    def test_register_normalizes_path(self) -> None:
        registry = CallbackRegistry()
        func = MagicMock()
        registry.register(" a .. b ", func)
        assert registry.resolve("a.b") is func

    def test_register_protected_path_raises(self) -> None:
        registry = CallbackRegistry()
        with pytest.raises(SecurityError, match="_hidden"):
            registry.register("tasks._hidden", MagicMock())

    def test_register_empty_path_raises(self) -> None:
        with pytest.raises(ValidationError):
            CallbackRegistry().register("..", MagicMock())

    def test_none_target_rejected(self) -> None:
        with pytest.raises(ValidationError, match="None"):
            CallbackRegistry({"a.b": None})
        with pytest.raises(ValidationError):
            CallbackRegistry().register("a.b", None)

    def test_register_module(self) -> None:
        registry = CallbackRegistry()
        module = registry.register_module("json")
        assert module is json
        assert registry.resolve("json.dumps") is json.dumps

    def test_unregister(self) -> None:
        registry = CallbackRegistry({"a": MagicMock()})
        assert registry.unregister("a") is True
        assert registry.unregister("a") is False
        assert "a" not in registry


class TestResolve:
    def test_walks_attributes_below_longest_prefix(self) -> None:
        func = MagicMock()
        other = MagicMock()
        registry = CallbackRegistry(
            {
                "app": SimpleNamespace(tasks=SimpleNamespace(run=other)),
                "app.tasks": SimpleNamespace(run=func),
            }
        )
        assert registry.resolve("app.tasks.run") is func

    def test_protected_segment_refused(self) -> None:
        registry = CallbackRegistry()
        registry.register_module("json")
        with pytest.raises(SecurityError, match="_default_encoder"):
            registry.resolve("json._default_encoder")

    def test_trailing_underscore_refused(self) -> None:
        registry = CallbackRegistry({"ns": SimpleNamespace(run_=MagicMock())})
        with pytest.raises(SecurityError):
            registry.resolve("ns.run_")

    def test_unknown_root(self) -> None:
        with pytest.raises(ResolutionError, match="nope"):
            CallbackRegistry().resolve("nope.run")

    def test_missing_attribute(self) -> None:
        registry = CallbackRegistry()
        registry.register_module("json")
        with pytest.raises(ResolutionError, match="missing"):
            registry.resolve("json.missing")

    def test_scalar_attribute_is_not_walked(self) -> None:
        registry = CallbackRegistry({"ns": SimpleNamespace(limit=5)})
        with pytest.raises(ResolutionError):
            registry.resolve("ns.limit.bit_length")

    def test_non_callable_target(self) -> None:
        registry = CallbackRegistry({"ns": SimpleNamespace(run=MagicMock())})
        with pytest.raises(ResolutionError, match="not callable"):
            registry.resolve("ns")

    def test_contains(self) -> None:
        registry = CallbackRegistry({"ns": SimpleNamespace(run=MagicMock())})
        assert "ns.run" in registry
        assert "ns.stop_" not in registry
        assert "other" not in registry
        assert 42 not in registry
