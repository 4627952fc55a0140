"""Application layer: orchestration of uploads, links and redemption."""

from .onetime_service import OnetimeService, generate_token
from .redemption_result import RedemptionOutcome, RedemptionResult

__all__ = [
    "OnetimeService",
    "RedemptionOutcome",
    "RedemptionResult",
    "generate_token",
]
