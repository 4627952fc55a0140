"""
Unit tests for the OnetimeFile and OnetimeLink entities.
"""

import pytest

from onetime.domain.entities import OnetimeFile, OnetimeLink
from onetime.domain.errors import InvalidInputError


class TestOnetimeFile:
    """Test OnetimeFile construction and serialization."""

    def test_valid_file(self):
        file = OnetimeFile("report.pdf", b"abc", 1000, 1500)

        assert file.filename == "report.pdf"
        assert file.contents == b"abc"
        assert file.contents_len == 3

    def test_bytearray_contents_are_frozen_to_bytes(self):
        file = OnetimeFile("a.bin", bytearray(b"\x00\x01"), 1, 1)

        assert isinstance(file.contents, bytes)
        assert file.contents == b"\x00\x01"

    def test_empty_contents_allowed(self):
        file = OnetimeFile("empty.txt", b"", 1, 1)
        assert file.contents_len == 0

    @pytest.mark.parametrize("filename", ["", None, 42])
    def test_invalid_filename_rejected(self, filename):
        with pytest.raises(InvalidInputError):
            OnetimeFile(filename, b"abc", 1, 1)

    def test_text_contents_rejected(self):
        with pytest.raises(InvalidInputError, match="contents must be bytes"):
            OnetimeFile("a.txt", "not bytes", 1, 1)

    @pytest.mark.parametrize("timestamp", [-1, "1000", 1.5, True, None])
    def test_invalid_timestamps_rejected(self, timestamp):
        with pytest.raises(InvalidInputError):
            OnetimeFile("a.txt", b"", timestamp, 1)
        with pytest.raises(InvalidInputError):
            OnetimeFile("a.txt", b"", 1, timestamp)

    def test_to_dict_omits_contents(self):
        file = OnetimeFile("report.pdf", b"x" * 10, 1000, 2000)

        assert file.to_dict() == {
            "filename": "report.pdf",
            "contents_len": 10,
            "created_at": 1000,
            "updated_at": 2000,
        }


class TestOnetimeLink:
    """Test OnetimeLink construction, state and serialization."""

    def test_issued_link_defaults(self):
        link = OnetimeLink("tok", "report.pdf", 1000)

        assert link.downloaded_at is None
        assert link.ip_address is None
        assert link.note is None
        assert link.expires_at is None
        assert link.is_downloaded is False

    def test_redeemed_link(self):
        link = OnetimeLink("tok", "report.pdf", 1000, downloaded_at=2000, ip_address="1.2.3.4")
        assert link.is_downloaded is True

    def test_zero_download_time_still_counts_as_downloaded(self):
        link = OnetimeLink("tok", "report.pdf", 0, downloaded_at=0)
        assert link.is_downloaded is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"token": ""},
            {"filename": ""},
            {"created_at": -5},
            {"downloaded_at": "2000"},
            {"expires_at": False},
            {"ip_address": 1234},
            {"note": b"bytes"},
        ],
    )
    def test_invalid_fields_rejected(self, kwargs):
        values = {"token": "tok", "filename": "report.pdf", "created_at": 1000}
        values.update(kwargs)

        with pytest.raises(InvalidInputError):
            OnetimeLink(**values)

    def test_to_dict(self):
        link = OnetimeLink(
            "tok", "report.pdf", 1000, note="for bob", expires_at=61000
        )

        assert link.to_dict() == {
            "token": "tok",
            "filename": "report.pdf",
            "note": "for bob",
            "created_at": 1000,
            "expires_at": 61000,
            "downloaded_at": None,
            "ip_address": None,
        }
