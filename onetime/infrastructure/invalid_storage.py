"""
Invalid Storage

Stand-in backend used when configuration does not yield a working
storage. The process still starts and every operation reports why.
"""

from typing import List

from onetime.domain.entities import OnetimeFile, OnetimeLink
from onetime.domain.errors import StorageUnavailableError
from onetime.domain.storage import OnetimeStorage


class InvalidStorage(OnetimeStorage):
    """OnetimeStorage whose every operation raises StorageUnavailableError."""

    name = "invalid"

    def __init__(self, error: str):
        self.error = error

    def _fail(self):
        raise StorageUnavailableError(self.error)

    def add_file(self, file: OnetimeFile) -> bool:
        self._fail()

    def list_files(self) -> List[OnetimeFile]:
        self._fail()

    def get_file(self, filename: str) -> OnetimeFile:
        self._fail()

    def add_link(self, link: OnetimeLink) -> bool:
        self._fail()

    def list_links(self) -> List[OnetimeLink]:
        self._fail()

    def get_link(self, token: str) -> OnetimeLink:
        self._fail()

    def mark_downloaded(
        self, link: OnetimeLink, ip_address: str, downloaded_at: int
    ) -> bool:
        self._fail()
