"""
Onetime Storage Interface

Abstract interface every storage backend implements. The application
layer depends only on this contract; exactly one implementation is
chosen by configuration at startup and never swapped at runtime.

Error convention shared by all implementations:
- NotFoundError when the file or link does not exist
- ConflictError when add_link meets an existing token
- MalformedRecordError when stored data cannot become an entity
- StorageUnavailableError for connectivity, pool or config failures
- a lost redemption race is NOT an error; mark_downloaded returns True
"""

from abc import ABC, abstractmethod
from typing import List

from .entities import OnetimeFile, OnetimeLink


class OnetimeStorage(ABC):
    """
    Storage port for files, links and the atomic redemption mark.

    Thread Safety:
    - Implementations are shared by every request handler in a process
      and must be safe to call concurrently.
    - The at-most-once guarantee of mark_downloaded must hold across
      processes, so it is delegated to the backend's own atomic
      primitive, never to an in-process lock.
    """

    name: str = "abstract"

    @abstractmethod
    def add_file(self, file: OnetimeFile) -> bool:
        """
        Insert or overwrite a file keyed by its filename.

        Re-uploading an existing filename replaces the contents, advances
        updated_at and keeps the original created_at.

        Returns:
            True once the write is persisted
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_files(self) -> List[OnetimeFile]:
        """Return every stored file in arbitrary order."""
        pass  # pragma: no cover

    @abstractmethod
    def get_file(self, filename: str) -> OnetimeFile:
        """
        Point lookup of a file, contents included.

        Raises:
            NotFoundError: If no file is stored under filename
        """
        pass  # pragma: no cover

    @abstractmethod
    def add_link(self, link: OnetimeLink) -> bool:
        """
        Insert a newly issued link.

        Raises:
            ConflictError: If a link with the same token already exists
        """
        pass  # pragma: no cover

    @abstractmethod
    def list_links(self) -> List[OnetimeLink]:
        """Return every stored link in arbitrary order."""
        pass  # pragma: no cover

    @abstractmethod
    def get_link(self, token: str) -> OnetimeLink:
        """
        Point lookup of a link.

        Raises:
            NotFoundError: If no link is stored under token
        """
        pass  # pragma: no cover

    @abstractmethod
    def mark_downloaded(
        self, link: OnetimeLink, ip_address: str, downloaded_at: int
    ) -> bool:
        """
        Atomically transition a link from Issued to Redeemed.

        The write only succeeds if no other caller has already recorded a
        download for the same token. Of any number of concurrent calls for
        one token, exactly one returns False.

        Args:
            link: Link as read by the caller (not yet downloaded at read time)
            ip_address: Network address of the redeeming client
            downloaded_at: Redemption instant in milliseconds

        Returns:
            True if the link was already downloaded (this caller lost the race),
            False if this call performed the transition

        Raises:
            NotFoundError: If the link no longer exists at all
            StorageUnavailableError: On genuine storage failures
        """
        pass  # pragma: no cover
