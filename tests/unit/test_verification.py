"""
Unit tests for description checksum verification.
"""

import logging

import pytest
import yaml

from sdkgen.description import load_description, processed_checksum
from sdkgen.errors import ChecksumMismatchError, DescriptionReadError
from sdkgen.verification import verify_description


@pytest.fixture
def stamp(write_description):
    """Factory fixture: write *data* with a correct x-spec-checksum."""
    def _stamp(data, filename: str = "openapi.yaml"):
        path = write_description(data, filename)
        data["x-spec-checksum"] = processed_checksum(load_description(path))
        return write_description(data, filename)
    return _stamp


DESCRIPTION = {"openapi": "3.0.3", "info": {"title": "Pets", "version": "1.0"}, "paths": {}}


class TestVerifyDescription:

    def test_matching_checksum(self, stamp):
        result = verify_description(stamp(dict(DESCRIPTION)))
        assert result.matches is True
        assert not result.drifted
        assert not result.updated

    def test_missing_checksum(self, write_description, caplog):
        with caplog.at_level(logging.WARNING):
            result = verify_description(write_description(dict(DESCRIPTION)))
        assert result.matches is None
        assert not result.updated
        assert "x-spec-checksum" in caplog.text

    def test_drift_raises(self, stamp):
        path = stamp(dict(DESCRIPTION))
        path.write_text(path.read_text().replace("Pets", "Cats"))
        with pytest.raises(ChecksumMismatchError) as exc_info:
            verify_description(path)
        assert exc_info.value.stored != exc_info.value.current
        assert str(path) in str(exc_info.value)

    def test_drift_without_failing(self, stamp):
        path = stamp(dict(DESCRIPTION))
        path.write_text(path.read_text().replace("Pets", "Cats"))
        result = verify_description(path, fail_on_mismatch=False)
        assert result.drifted
        assert "Cats" in path.read_text()
        assert not result.updated

    @pytest.mark.parametrize("filename", ["openapi.yaml", "openapi.json"])
    def test_update_restamps_in_place(self, stamp, filename):
        path = stamp(dict(DESCRIPTION), filename)
        path.write_text(path.read_text().replace("Pets", "Cats"))

        result = verify_description(path, update=True)

        assert result.updated
        document = load_description(path)
        assert document.data["x-spec-checksum"] == result.current
        assert document.data["info"]["title"] == "Cats"
        assert verify_description(path).matches is True

    def test_update_adds_missing_checksum(self, write_description):
        path = write_description(dict(DESCRIPTION))
        result = verify_description(path, update=True)
        assert result.updated
        data = yaml.safe_load(path.read_text())
        assert list(data)[:2] == ["openapi", "info"]
        assert data["x-spec-checksum"] == result.current

    def test_unreadable_description(self, tmp_path):
        with pytest.raises(DescriptionReadError):
            verify_description(tmp_path / "absent.json")
