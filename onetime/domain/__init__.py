"""
Onetime Domain

Entities, clock, error taxonomy and the storage port.
"""

from .clock import Clock, FixedClock, SystemClock
from .entities import OnetimeFile, OnetimeLink
from .errors import (
    ConflictError,
    DomainError,
    InvalidInputError,
    MalformedRecordError,
    NotFoundError,
    StorageUnavailableError,
)
from .storage import OnetimeStorage

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "OnetimeFile",
    "OnetimeLink",
    "OnetimeStorage",
    "DomainError",
    "InvalidInputError",
    "NotFoundError",
    "ConflictError",
    "MalformedRecordError",
    "StorageUnavailableError",
]
