"""
Onetime Service

Application service for uploading files, issuing single-use links and
redeeming them. Holds no persistent state; all state lives in the
configured storage backend.
"""

import logging
import secrets
from typing import List, Optional

from onetime.domain.clock import Clock
from onetime.domain.entities import OnetimeFile, OnetimeLink, require_text
from onetime.domain.errors import (
    ConflictError,
    DomainError,
    InvalidInputError,
    NotFoundError,
)
from onetime.domain.storage import OnetimeStorage

from .redemption_result import RedemptionOutcome, RedemptionResult

logger = logging.getLogger(__name__)

DOWNLOAD_PATH_PREFIX = "/download"


def generate_token(now_ms: int) -> str:
    """
    Build a link token: creation timestamp then 64 random bits, both as
    16 hex digits. Tokens sort by creation time and do not collide in
    practice.
    """
    return f"{now_ms:016x}{secrets.randbits(64):016x}"


class OnetimeService:
    """
    Orchestrates the upload, issuance and redemption workflows.

    Args:
        storage: The single storage backend chosen at startup
        clock: Source of millisecond timestamps
        token_attempts: How many fresh tokens to try if one collides (at least 1)
    """

    def __init__(self, storage: OnetimeStorage, clock: Clock, token_attempts: int = 3):
        if token_attempts < 1:
            raise ValueError(f"token_attempts must be at least 1, got {token_attempts}")
        self.storage = storage
        self.clock = clock
        self.token_attempts = token_attempts

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def upload_file(self, filename: str, contents: bytes) -> OnetimeFile:
        """
        Store a file, replacing any previous upload with the same name.

        Raises:
            InvalidInputError: If filename is empty or contents are not bytes
            StorageUnavailableError: If the backend cannot be reached
        """
        now = self.clock.now_ms()
        file = OnetimeFile(
            filename=filename, contents=contents, created_at=now, updated_at=now
        )
        self.storage.add_file(file)
        logger.info(f"Stored file '{filename}' ({file.contents_len} bytes)")
        return file

    def list_files(self) -> List[OnetimeFile]:
        return self.storage.list_files()

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def issue_link(
        self,
        filename: str,
        note: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> OnetimeLink:
        """
        Issue a new single-use link for a filename.

        The file does not have to exist yet; redemption reports
        CONTENT_MISSING if it is still absent then.

        Args:
            filename: Name of the file the link serves
            note: Optional free text stored with the link
            ttl_seconds: Optional lifetime recorded as expires_at (not enforced)

        Returns:
            The stored link

        Raises:
            InvalidInputError: If filename is empty or ttl_seconds is negative
            ConflictError: If every generated token collided
        """
        require_text("filename", filename)
        if ttl_seconds is not None and (isinstance(ttl_seconds, bool) or ttl_seconds < 0):
            raise InvalidInputError(f"ttl_seconds must be non-negative, got {ttl_seconds!r}")

        last_error: Optional[ConflictError] = None
        for _ in range(self.token_attempts):
            now = self.clock.now_ms()
            link = OnetimeLink(
                token=generate_token(now),
                filename=filename,
                created_at=now,
                note=note,
                expires_at=now + ttl_seconds * 1000 if ttl_seconds is not None else None,
            )
            try:
                self.storage.add_link(link)
            except ConflictError as e:
                logger.warning(f"Token collision for {link.token}, retrying")
                last_error = e
                continue
            logger.info(f"Issued link {link.token} for '{filename}'")
            return link

        raise last_error

    def list_links(self) -> List[OnetimeLink]:
        return self.storage.list_links()

    def get_link(self, token: str) -> OnetimeLink:
        return self.storage.get_link(token)

    @staticmethod
    def download_path(link: OnetimeLink) -> str:
        return f"{DOWNLOAD_PATH_PREFIX}/{link.token}"

    # ------------------------------------------------------------------
    # Redemption
    # ------------------------------------------------------------------

    def redeem(self, token: str, ip_address: str) -> RedemptionResult:
        """
        Redeem a link, returning file contents to at most one caller.

        Workflow:
        1. Fetch the link; absent links are NOT_FOUND
        2. Short-circuit links that already show a download
        3. Atomically mark the link downloaded at clock.now_ms()
        4. A lost race is ALREADY_REDEEMED, exactly like step 2
        5. Only the winner fetches the file; a missing file is CONTENT_MISSING

        Storage failures never escape; they become INTERNAL_ERROR.

        Args:
            token: Link token from the download URL
            ip_address: Network address of the requesting client

        Returns:
            RedemptionResult describing the outcome
        """
        try:
            require_text("token", token)
            require_text("ip_address", ip_address)
        except InvalidInputError as e:
            return RedemptionResult.create_failure(
                RedemptionOutcome.INVALID_REQUEST, token, str(e)
            )

        try:
            link = self.storage.get_link(token)
        except NotFoundError as e:
            logger.info(f"Redeem {token}: no such link")
            return RedemptionResult.create_failure(
                RedemptionOutcome.NOT_FOUND, token, f"Could not find file for link {token}: {e}"
            )
        except DomainError as e:
            return self._internal_error("get_link", token, e)

        if link.is_downloaded:
            logger.info(f"Redeem {token}: already downloaded")
            return RedemptionResult.create_failure(
                RedemptionOutcome.ALREADY_REDEEMED, token, "Already downloaded", link
            )

        now = self.clock.now_ms()
        try:
            lost_race = self.storage.mark_downloaded(link, ip_address, now)
        except NotFoundError as e:
            logger.info(f"Redeem {token}: link disappeared before the mark")
            return RedemptionResult.create_failure(
                RedemptionOutcome.NOT_FOUND, token, f"Could not find file for link {token}: {e}"
            )
        except DomainError as e:
            return self._internal_error("mark_downloaded", token, e)

        if lost_race:
            logger.info(f"Redeem {token}: lost the race from {ip_address}")
            return RedemptionResult.create_failure(
                RedemptionOutcome.ALREADY_REDEEMED, token, "Already downloaded race", link
            )

        link.downloaded_at = now
        link.ip_address = ip_address

        try:
            file = self.storage.get_file(link.filename)
        except NotFoundError as e:
            logger.warning(f"Redeem {token}: file '{link.filename}' is missing")
            return RedemptionResult.create_failure(
                RedemptionOutcome.CONTENT_MISSING,
                token,
                f"Could not find contents for filename {link.filename}: {e}",
                link,
            )
        except DomainError as e:
            return self._internal_error("get_file", token, e, link)

        logger.info(f"Redeem {token}: served '{file.filename}' to {ip_address}")
        return RedemptionResult.create_success(link, file.filename, file.contents)

    def _internal_error(
        self,
        operation: str,
        token: str,
        error: DomainError,
        link: Optional[OnetimeLink] = None,
    ) -> RedemptionResult:
        logger.error(f"Redeem {token}: {operation} failed: {error}")
        return RedemptionResult.create_failure(
            RedemptionOutcome.INTERNAL_ERROR,
            token,
            f"Something went wrong! {error}",
            link,
        )
