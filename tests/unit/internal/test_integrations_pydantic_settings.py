from __future__ import annotations

import importlib
from types import ModuleType
from typing import Any

from pydantic_settings import BaseSettings

import autowire._internal.integrations.pydantic_settings as pydantic_settings_integration
from autowire._internal.recipes import RecipeExtractor


class _AppSettings(BaseSettings):
    database_url: str


def test_load_pydantic_v1_base_returns_none_for_missing_module(monkeypatch: Any) -> None:
    def _raise_import_error(_module_name: str) -> ModuleType:
        raise ImportError

    monkeypatch.setattr(importlib, "import_module", _raise_import_error)

    assert pydantic_settings_integration._load_pydantic_v1_base() is None


def test_load_pydantic_v1_base_returns_none_when_base_settings_is_not_a_type(
    monkeypatch: Any,
) -> None:
    module = ModuleType("pydantic.v1")
    module.BaseSettings = "not-a-type"  # type: ignore[attr-defined]

    def _import_module(_module_name: str) -> ModuleType:
        return module

    monkeypatch.setattr(importlib, "import_module", _import_module)

    assert pydantic_settings_integration._load_pydantic_v1_base() is None


def test_settings_bases_include_pydantic_settings_base() -> None:
    assert BaseSettings in pydantic_settings_integration.SETTINGS_BASES


def test_is_pydantic_settings_subclass_detects_settings_models() -> None:
    assert pydantic_settings_integration.is_pydantic_settings_subclass(_AppSettings) is True
    assert pydantic_settings_integration.is_pydantic_settings_subclass(dict) is False


def test_is_pydantic_settings_subclass_returns_false_for_non_type() -> None:
    assert pydantic_settings_integration.is_pydantic_settings_subclass("not-a-class") is False


def test_is_pydantic_settings_subclass_returns_false_on_issubclass_type_error(
    monkeypatch: Any,
) -> None:
    class _Candidate:
        pass

    monkeypatch.setattr(
        pydantic_settings_integration,
        "SETTINGS_BASES",
        ("not-a-class",),
    )

    assert pydantic_settings_integration.is_pydantic_settings_subclass(_Candidate) is False


def test_settings_recipe_takes_no_parameters() -> None:
    recipe = RecipeExtractor().from_concrete_type(_AppSettings)

    assert recipe.provides is _AppSettings
    assert recipe.parameter_types == ()
    assert recipe.factory is _AppSettings
