"""
Redis Storage Implementation

Single-item-per-key backend: every file and every link is one Redis hash
keyed "{table}:{identifier}". Attribute names are fixed strings shared
with existing stored data. Numbers are decimal strings, contents raw bytes.

The at-most-once redemption guarantee comes from a Lua script that Redis
runs atomically: it writes DownloadedAt only if the attribute is absent.
"""

import logging
import re
from contextlib import contextmanager
from typing import Dict, List, Optional

from redis.exceptions import RedisError

from onetime.domain.entities import OnetimeFile, OnetimeLink, require_text
from onetime.domain.errors import (
    ConflictError,
    InvalidInputError,
    MalformedRecordError,
    NotFoundError,
    StorageUnavailableError,
)
from onetime.domain.storage import OnetimeStorage

logger = logging.getLogger(__name__)

Attributes = Dict[bytes, bytes]

_DECIMAL = re.compile(r"-?[0-9]+")


def _attr_raw(attributes: Attributes, field: str, required: bool) -> Optional[bytes]:
    raw = attributes.get(field.encode())
    if raw is None and required:
        raise MalformedRecordError(f"Missing field {field}")
    return raw


def _attr_s(attributes: Attributes, field: str, required: bool = True) -> Optional[str]:
    raw = _attr_raw(attributes, field, required)
    if raw is None:
        return None
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedRecordError(f"Field {field} is not valid UTF-8", e) from e


def _attr_n(attributes: Attributes, field: str, required: bool = True) -> Optional[int]:
    raw = _attr_raw(attributes, field, required)
    if raw is None:
        return None
    text = raw.decode("ascii", errors="replace")
    if not _DECIMAL.fullmatch(text):
        raise MalformedRecordError(f"Field {field} is not a number: {raw!r}")
    return int(text)


def _attr_b(attributes: Attributes, field: str) -> bytes:
    return bytes(_attr_raw(attributes, field, required=True))


def _escape_glob(value: str) -> str:
    return re.sub(r"([*?\[\]\\])", r"\\\1", value)


class RedisStorage(OnetimeStorage):
    """
    Redis-based implementation of OnetimeStorage.

    Args:
        redis_client: redis.Redis created with decode_responses=False
        files_table: Key prefix for file hashes
        links_table: Key prefix for link hashes
        scan_count: COUNT hint for SCAN when listing
    """

    name = "redis"

    FIELD_FILENAME = "Filename"
    FIELD_CONTENTS = "Contents"
    FIELD_CREATED_AT = "CreatedAt"
    FIELD_UPDATED_AT = "UpdatedAt"

    FIELD_TOKEN = "Token"
    FIELD_NOTE = "Note"
    FIELD_EXPIRES_AT = "ExpiresAt"
    FIELD_DOWNLOADED_AT = "DownloadedAt"
    FIELD_IP_ADDRESS = "IpAddress"

    # Insert the link hash only if no item exists under the token
    ADD_LINK_SCRIPT = """
    if redis.call('EXISTS', KEYS[1]) == 1 then
        return 0
    end
    redis.call('HSET', KEYS[1], unpack(ARGV))
    return 1
    """

    # -1: no such link, 0: already downloaded, 1: this call redeemed it
    MARK_DOWNLOADED_SCRIPT = """
    if redis.call('EXISTS', KEYS[1]) == 0 then
        return -1
    end
    if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 1 then
        return 0
    end
    redis.call('HSET', KEYS[1], ARGV[1], ARGV[2], ARGV[3], ARGV[4])
    return 1
    """

    def __init__(
        self,
        redis_client,
        files_table: str = "Onetime.Files",
        links_table: str = "Onetime.Links",
        scan_count: int = 100,
    ):
        self.redis = redis_client
        self.files_table = files_table
        self.links_table = links_table
        self.scan_count = scan_count

    def _file_key(self, filename: str) -> str:
        return f"{self.files_table}:{filename}"

    def _link_key(self, token: str) -> str:
        return f"{self.links_table}:{token}"

    @contextmanager
    def _translate_errors(self, operation: str, identifier: str = ""):
        """Turn driver exceptions into StorageUnavailableError with context."""
        try:
            yield
        except RedisError as e:
            target = f" for '{identifier}'" if identifier else ""
            logger.error(f"Redis {operation} failed{target}: {e}")
            raise StorageUnavailableError(
                f"{operation} failed{target}: {e}", original_error=e
            ) from e

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def add_file(self, file: OnetimeFile) -> bool:
        key = self._file_key(file.filename)
        with self._translate_errors("Add file", file.filename):
            pipeline = self.redis.pipeline(transaction=True)
            pipeline.hset(
                key,
                mapping={
                    self.FIELD_FILENAME: file.filename,
                    self.FIELD_CONTENTS: file.contents,
                    self.FIELD_UPDATED_AT: str(file.updated_at),
                },
            )
            # First upload wins the creation timestamp
            pipeline.hsetnx(key, self.FIELD_CREATED_AT, str(file.created_at))
            pipeline.execute()
        return True

    def list_files(self) -> List[OnetimeFile]:
        with self._translate_errors("List files"):
            items = self._scan_items(self.files_table)
        return [self._build_file(key, attributes) for key, attributes in items]

    def get_file(self, filename: str) -> OnetimeFile:
        require_text("filename", filename)
        key = self._file_key(filename)
        with self._translate_errors("Get file", filename):
            attributes = self.redis.hgetall(key)
        if not attributes:
            raise NotFoundError(f"File not found: '{filename}'")
        return self._build_file(key, attributes)

    def _build_file(self, key, attributes: Attributes) -> OnetimeFile:
        try:
            return OnetimeFile(
                filename=_attr_s(attributes, self.FIELD_FILENAME),
                contents=_attr_b(attributes, self.FIELD_CONTENTS),
                created_at=_attr_n(attributes, self.FIELD_CREATED_AT),
                updated_at=_attr_n(attributes, self.FIELD_UPDATED_AT),
            )
        except (MalformedRecordError, InvalidInputError) as e:
            raise MalformedRecordError(
                f"Malformed file record {_key_text(key)}: {e}", original_error=e
            ) from e

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def add_link(self, link: OnetimeLink) -> bool:
        item = {
            self.FIELD_TOKEN: link.token,
            self.FIELD_FILENAME: link.filename,
            self.FIELD_CREATED_AT: str(link.created_at),
        }
        if link.note is not None:
            item[self.FIELD_NOTE] = link.note
        if link.expires_at is not None:
            item[self.FIELD_EXPIRES_AT] = str(link.expires_at)
        if link.downloaded_at is not None:
            item[self.FIELD_DOWNLOADED_AT] = str(link.downloaded_at)
        if link.ip_address is not None:
            item[self.FIELD_IP_ADDRESS] = link.ip_address

        args = [part for pair in item.items() for part in pair]
        with self._translate_errors("Add link", link.token):
            created = self.redis.eval(
                self.ADD_LINK_SCRIPT, 1, self._link_key(link.token), *args
            )
        if created != 1:
            raise ConflictError(f"Link already exists: '{link.token}'")
        return True

    def list_links(self) -> List[OnetimeLink]:
        with self._translate_errors("List links"):
            items = self._scan_items(self.links_table)
        return [self._build_link(key, attributes) for key, attributes in items]

    def get_link(self, token: str) -> OnetimeLink:
        require_text("token", token)
        key = self._link_key(token)
        with self._translate_errors("Get link", token):
            attributes = self.redis.hgetall(key)
        if not attributes:
            raise NotFoundError(f"Link not found: '{token}'")
        return self._build_link(key, attributes)

    def _build_link(self, key, attributes: Attributes) -> OnetimeLink:
        try:
            return OnetimeLink(
                token=_attr_s(attributes, self.FIELD_TOKEN),
                filename=_attr_s(attributes, self.FIELD_FILENAME),
                created_at=_attr_n(attributes, self.FIELD_CREATED_AT),
                downloaded_at=_attr_n(attributes, self.FIELD_DOWNLOADED_AT, required=False),
                ip_address=_attr_s(attributes, self.FIELD_IP_ADDRESS, required=False),
                note=_attr_s(attributes, self.FIELD_NOTE, required=False),
                expires_at=_attr_n(attributes, self.FIELD_EXPIRES_AT, required=False),
            )
        except (MalformedRecordError, InvalidInputError) as e:
            raise MalformedRecordError(
                f"Malformed link record {_key_text(key)}: {e}", original_error=e
            ) from e

    def mark_downloaded(
        self, link: OnetimeLink, ip_address: str, downloaded_at: int
    ) -> bool:
        require_text("ip_address", ip_address)
        with self._translate_errors("Mark downloaded", link.token):
            result = self.redis.eval(
                self.MARK_DOWNLOADED_SCRIPT,
                1,
                self._link_key(link.token),
                self.FIELD_DOWNLOADED_AT,
                str(downloaded_at),
                self.FIELD_IP_ADDRESS,
                ip_address,
            )

        if result == -1:
            raise NotFoundError(f"Link not found: '{link.token}'")
        if result == 0:
            logger.info(f"Link {link.token} was already downloaded")
            return True
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _scan_items(self, table: str):
        """
        Collect (key, attributes) for every hash under a table prefix.

        Uses SCAN so listing never blocks Redis, then a pipeline of HGETALL
        in one round trip. Keys deleted between the two steps are skipped.
        """
        keys = list(
            self.redis.scan_iter(match=f"{_escape_glob(table)}:*", count=self.scan_count)
        )
        if not keys:
            return []

        pipeline = self.redis.pipeline(transaction=False)
        for key in keys:
            pipeline.hgetall(key)
        results = pipeline.execute()

        return [(key, attributes) for key, attributes in zip(keys, results) if attributes]


def _key_text(key) -> str:
    if isinstance(key, bytes):
        return key.decode("utf-8", errors="replace")
    return str(key)
