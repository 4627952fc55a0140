"""
Test fixtures: entity factories and an in-memory storage double.
"""

from .domain_fixtures import create_file, create_link, create_redeemed_link
from .mock_storage import MockStorage

__all__ = [
    "MockStorage",
    "create_file",
    "create_link",
    "create_redeemed_link",
]
