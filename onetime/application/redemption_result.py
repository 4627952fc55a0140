"""
Redemption Result Value Object

Encapsulates the outcome of a redemption attempt.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from onetime.domain.entities import OnetimeLink
from onetime.domain.errors import ApplicationError, ErrorCategory


class RedemptionOutcome(Enum):
    """Every way a redemption attempt can end."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ALREADY_REDEEMED = "already_redeemed"
    CONTENT_MISSING = "content_missing"
    INVALID_REQUEST = "invalid_request"
    INTERNAL_ERROR = "internal_error"


_OUTCOME_CATEGORIES = {
    RedemptionOutcome.NOT_FOUND: ErrorCategory.LINK_NOT_FOUND,
    RedemptionOutcome.ALREADY_REDEEMED: ErrorCategory.ALREADY_DOWNLOADED,
    RedemptionOutcome.CONTENT_MISSING: ErrorCategory.CONTENT_MISSING,
    RedemptionOutcome.INVALID_REQUEST: ErrorCategory.INVALID_REQUEST,
    RedemptionOutcome.INTERNAL_ERROR: ErrorCategory.SYSTEM_ERROR,
}


@dataclass
class RedemptionResult:
    """
    Value object representing the result of a redemption.

    Only a SUCCESS result carries file contents, and only the caller that
    won the atomic mark ever receives one.
    """

    outcome: RedemptionOutcome
    token: str
    link: Optional[OnetimeLink] = None
    filename: Optional[str] = None
    contents: Optional[bytes] = None
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is RedemptionOutcome.SUCCESS

    @property
    def error_category(self) -> Optional[ErrorCategory]:
        return _OUTCOME_CATEGORIES.get(self.outcome)

    @classmethod
    def create_success(
        cls, link: OnetimeLink, filename: str, contents: bytes
    ) -> "RedemptionResult":
        return cls(
            outcome=RedemptionOutcome.SUCCESS,
            token=link.token,
            link=link,
            filename=filename,
            contents=contents,
        )

    @classmethod
    def create_failure(
        cls,
        outcome: RedemptionOutcome,
        token: str,
        error_message: str,
        link: Optional[OnetimeLink] = None,
    ) -> "RedemptionResult":
        return cls(
            outcome=outcome,
            token=token,
            link=link,
            error_message=error_message,
        )

    @property
    def content_disposition(self) -> str:
        quoted = (self.filename or "").replace("\\", "\\\\").replace('"', '\\"')
        return f'inline; filename="{quoted}"'

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert a failed result to the structured API error body.

        Returns:
            Dictionary with error information
        """
        if self.success:
            return {"status": "success", "token": self.token, "filename": self.filename}
        return ApplicationError(self.error_category, self.error_message).to_dict()
