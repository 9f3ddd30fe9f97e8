"""
Unit tests for adapter registration, selection and fallback handling.
"""

import logging

import pytest

from sdkgen.adapters import (
    AdapterRegistry,
    FallbackMode,
    OpenAPI30ClientAdapter,
    Swagger2ClientAdapter,
    default_registry,
    detect_adapter,
)
from sdkgen.adapters.base import Adapter
from sdkgen.config import get_settings
from sdkgen.errors import AdapterDetectionError, UnsupportedVersionError


class RecordingAdapter(Adapter):
    """Adapter that supports a fixed set of versions and records generate() calls."""

    def __init__(self, name, versions):
        self.name = name
        self.versions = set(versions)
        self.calls = []

    def supports(self, version):
        return version in self.versions

    def generate(self, description_path, out_dir, options):
        self.calls.append((description_path, out_dir, options))


@pytest.fixture
def registry():
    return default_registry(engine=None)


class TestBuiltinAdapters:

    @pytest.mark.parametrize("version", ["3.0", "3.0.0", "3.0.3"])
    def test_openapi30_support(self, version):
        assert OpenAPI30ClientAdapter(None).supports(version)
        assert not Swagger2ClientAdapter(None).supports(version)

    @pytest.mark.parametrize("version", ["2", "2.0"])
    def test_swagger2_support(self, version):
        assert Swagger2ClientAdapter(None).supports(version)

    @pytest.mark.parametrize("version", ["3.1.0", "3.10", "30.0", "unknown"])
    def test_no_support(self, version):
        assert not OpenAPI30ClientAdapter(None).supports(version)
        assert not Swagger2ClientAdapter(None).supports(version)

    def test_default_is_newest(self, registry):
        assert isinstance(registry.default, OpenAPI30ClientAdapter)
        assert [type(a) for a in registry] == [Swagger2ClientAdapter, OpenAPI30ClientAdapter]


class TestSelect:

    def test_explicit_support(self, registry):
        assert isinstance(registry.select("3.0.3", FallbackMode.STRICT), OpenAPI30ClientAdapter)
        assert isinstance(registry.select("2.0", FallbackMode.STRICT), Swagger2ClientAdapter)

    def test_first_match_wins(self):
        first = RecordingAdapter("first", {"9.9"})
        second = RecordingAdapter("second", {"9.9"})
        assert AdapterRegistry([first, second]).select("9.9") is first

    def test_registry_needs_an_adapter(self):
        with pytest.raises(ValueError):
            AdapterRegistry([])

    def test_strict_raises(self, registry):
        with pytest.raises(UnsupportedVersionError) as exc_info:
            registry.select("3.1.0", FallbackMode.STRICT, "api.yaml")
        assert exc_info.value.version == "3.1.0"
        assert exc_info.value.description_path == "api.yaml"
        assert "No generator explicitly supports OpenAPI 3.1.0" in str(exc_info.value)

    def test_warn_falls_back_with_warning(self, registry, caplog):
        with caplog.at_level(logging.WARNING):
            adapter = registry.select("3.1.0", FallbackMode.WARN)
        assert adapter is registry.default
        assert "3.1.0" in caplog.text
        assert "3.x features" in caplog.text

    def test_warn_message_for_future_major(self, registry, caplog):
        with caplog.at_level(logging.WARNING):
            registry.select("4.0.0", FallbackMode.WARN)
        assert "newer than any registered adapter" in caplog.text

    def test_warn_message_for_unrecognized(self, registry, caplog):
        with caplog.at_level(logging.WARNING):
            registry.select("unknown", FallbackMode.WARN)
        assert "Unrecognized description version" in caplog.text

    def test_auto_is_silent(self, registry, caplog):
        with caplog.at_level(logging.WARNING):
            adapter = registry.select("3.1.0", FallbackMode.AUTO)
        assert adapter is registry.default
        assert caplog.text == ""


class TestDetectAdapter:

    def test_explicit_support_has_no_fallback(self, openapi30_file, registry):
        result = detect_adapter(openapi30_file, FallbackMode.STRICT, registry=registry)
        assert isinstance(result.adapter, OpenAPI30ClientAdapter)
        assert result.is_explicitly_supported
        assert result.applied_fallback is None
        assert (result.major_version, result.minor_version) == (3, 0)

    def test_fallback_is_reported(self, write_description, registry):
        path = write_description({"openapi": "3.1.0"})
        result = detect_adapter(path, "auto", registry=registry)
        assert result.adapter is registry.default
        assert not result.is_explicitly_supported
        assert result.applied_fallback == FallbackMode.AUTO

    def test_strict_error_is_enriched(self, write_description, registry):
        path = write_description({"openapi": "3.1.0"})
        with pytest.raises(AdapterDetectionError) as exc_info:
            detect_adapter(path, "strict", registry=registry)
        message = str(exc_info.value)
        assert message.startswith("Failed to detect adapter for OpenAPI 3.1.0")
        assert f"File: {path}" in message
        assert "Fallback mode: strict" in message
        assert isinstance(exc_info.value.__cause__, UnsupportedVersionError)

    def test_mode_from_settings(self, write_description, registry, monkeypatch):
        path = write_description({"openapi": "3.1.0"})
        monkeypatch.setenv("OPENAPI_ADAPTER_FALLBACK", "strict")
        with pytest.raises(AdapterDetectionError):
            detect_adapter(path, settings=get_settings(), registry=registry)

    def test_explicit_mode_beats_settings(self, write_description, registry, monkeypatch):
        path = write_description({"openapi": "3.1.0"})
        monkeypatch.setenv("OPENAPI_ADAPTER_FALLBACK", "strict")
        result = detect_adapter(path, "auto", settings=get_settings(), registry=registry)
        assert result.applied_fallback == FallbackMode.AUTO

    def test_unset_mode_warns(self, write_description, registry, caplog):
        path = write_description({"openapi": "3.1.0"})
        with caplog.at_level(logging.WARNING):
            result = detect_adapter(path, registry=registry)
        assert result.applied_fallback == FallbackMode.WARN
        assert "3.1.0" in caplog.text

    def test_selected_adapter_generates(self, write_description, tmp_path):
        adapter = RecordingAdapter("custom", {"3.0.3"})
        path = write_description({"openapi": "3.0.3"})
        result = detect_adapter(path, registry=AdapterRegistry([adapter]))
        result.adapter.generate(path, tmp_path / "out", None)
        assert adapter.calls == [(path, tmp_path / "out", None)]
