"""
Unit tests for settings resolution and coercion of invalid values.
"""

import logging

import pytest

from sdkgen.config import (
    DEFAULT_ENUM_LIMIT,
    CollapseMode,
    FallbackMode,
    get_settings,
    parse_fallback_mode,
)


class TestDefaults:

    def test_defaults(self):
        settings = get_settings()
        assert settings.CODEGEN_ENUM_LIMIT == DEFAULT_ENUM_LIMIT == 45
        assert settings.CODEGEN_ENUM_UNIONS == CollapseMode.AUTO
        assert settings.OPENAPI_ADAPTER_FALLBACK == FallbackMode.WARN
        assert settings.CODEGEN_PERF_IGNORE is False
        assert settings.GITHUB_ACTIONS is False
        assert str(settings.baseline_path).replace("\\", "/") == ".cache/codegen_perf.json"

    def test_env_file_is_read(self, tmp_path):
        (tmp_path / ".env").write_text("CODEGEN_ENUM_LIMIT=12\n")
        assert get_settings().CODEGEN_ENUM_LIMIT == 12


class TestEnumLimit:

    def test_valid(self, monkeypatch):
        monkeypatch.setenv("CODEGEN_ENUM_LIMIT", "20")
        assert get_settings().CODEGEN_ENUM_LIMIT == 20

    @pytest.mark.parametrize("value", ["abc", "0", "-3", ""])
    def test_invalid_uses_default(self, monkeypatch, caplog, value):
        monkeypatch.setenv("CODEGEN_ENUM_LIMIT", value)
        with caplog.at_level(logging.WARNING):
            assert get_settings().CODEGEN_ENUM_LIMIT == DEFAULT_ENUM_LIMIT
        assert "Invalid CODEGEN_ENUM_LIMIT" in caplog.text


class TestEnumUnions:

    @pytest.mark.parametrize("value, expected", [
        ("auto", CollapseMode.AUTO),
        ("branded", CollapseMode.BRANDED),
        ("UNION", CollapseMode.UNION),
    ])
    def test_valid(self, monkeypatch, value, expected):
        monkeypatch.setenv("CODEGEN_ENUM_UNIONS", value)
        assert get_settings().CODEGEN_ENUM_UNIONS == expected

    def test_invalid_uses_auto(self, monkeypatch, caplog):
        monkeypatch.setenv("CODEGEN_ENUM_UNIONS", "sometimes")
        with caplog.at_level(logging.WARNING):
            assert get_settings().CODEGEN_ENUM_UNIONS == CollapseMode.AUTO
        assert "Invalid CODEGEN_ENUM_UNIONS" in caplog.text


class TestFallbackMode:

    @pytest.mark.parametrize("value, expected", [
        (None, FallbackMode.WARN),
        ("", FallbackMode.WARN),
        ("strict", FallbackMode.STRICT),
        (" Auto ", FallbackMode.AUTO),
        (FallbackMode.STRICT, FallbackMode.STRICT),
    ])
    def test_parse(self, value, expected):
        assert parse_fallback_mode(value) == expected

    def test_unrecognized_uses_auto(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_fallback_mode("lenient") == FallbackMode.AUTO
        assert "Invalid OPENAPI_ADAPTER_FALLBACK" in caplog.text

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAPI_ADAPTER_FALLBACK", "strict")
        assert get_settings().OPENAPI_ADAPTER_FALLBACK == FallbackMode.STRICT


class TestFlags:

    @pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("false", False), ("no", False)])
    def test_perf_ignore(self, monkeypatch, value, expected):
        monkeypatch.setenv("CODEGEN_PERF_IGNORE", value)
        assert get_settings().CODEGEN_PERF_IGNORE is expected

    def test_github_actions(self, monkeypatch):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        assert get_settings().GITHUB_ACTIONS is True

    def test_cache_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CODEGEN_CACHE_DIR", str(tmp_path / "perf"))
        assert get_settings().baseline_path == tmp_path / "perf" / "codegen_perf.json"
