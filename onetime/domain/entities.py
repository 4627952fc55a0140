"""
Onetime Entities

Domain entities for uploaded files and the single-use links that serve them.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidInputError


def require_text(field: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise InvalidInputError(f"{field} must be a non-empty string, got {value!r}")


def _require_timestamp(field: str, value: Any) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidInputError(f"{field} must be a non-negative integer, got {value!r}")


def _optional_timestamp(field: str, value: Any) -> None:
    if value is not None:
        _require_timestamp(field, value)


def _optional_text(field: str, value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise InvalidInputError(f"{field} must be a string or None, got {value!r}")


@dataclass
class OnetimeFile:
    """
    Entity representing an uploaded file.

    The filename is the storage key. Contents are opaque bytes that the
    redemption flow never mutates.
    """

    filename: str
    contents: bytes
    created_at: int
    updated_at: int

    def __post_init__(self):
        require_text("filename", self.filename)
        if isinstance(self.contents, (bytearray, memoryview)):
            self.contents = bytes(self.contents)
        if not isinstance(self.contents, bytes):
            raise InvalidInputError(
                f"contents must be bytes, got {type(self.contents).__name__}"
            )
        _require_timestamp("created_at", self.created_at)
        _require_timestamp("updated_at", self.updated_at)

    @property
    def contents_len(self) -> int:
        return len(self.contents)

    def to_dict(self) -> Dict[str, Any]:
        """Listing form; carries the content length, never the bytes."""
        return {
            "filename": self.filename,
            "contents_len": self.contents_len,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class OnetimeLink:
    """
    Entity representing a single-use download link.

    A link is Issued while downloaded_at is None and Redeemed once it
    holds a timestamp. The transition happens at most once per token and
    only through the storage layer's atomic mark.
    """

    token: str
    filename: str
    created_at: int
    downloaded_at: Optional[int] = None
    ip_address: Optional[str] = None
    note: Optional[str] = None
    expires_at: Optional[int] = None

    def __post_init__(self):
        require_text("token", self.token)
        require_text("filename", self.filename)
        _require_timestamp("created_at", self.created_at)
        _optional_timestamp("downloaded_at", self.downloaded_at)
        _optional_timestamp("expires_at", self.expires_at)
        _optional_text("ip_address", self.ip_address)
        _optional_text("note", self.note)

    @property
    def is_downloaded(self) -> bool:
        return self.downloaded_at is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "token": self.token,
            "filename": self.filename,
            "note": self.note,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "downloaded_at": self.downloaded_at,
            "ip_address": self.ip_address,
        }
