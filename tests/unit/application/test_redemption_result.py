import pytest

from onetime.application.redemption_result import RedemptionOutcome, RedemptionResult
from onetime.domain.errors import ErrorCategory
from tests.fixtures import create_link


def test_success_result():
    link = create_link(token="tok")
    result = RedemptionResult.create_success(link, "report.pdf", b"bytes")

    assert result.success
    assert result.token == "tok"
    assert result.error_category is None
    assert result.content_disposition == 'inline; filename="report.pdf"'


def test_content_disposition_escapes_quotes():
    result = RedemptionResult.create_success(create_link(), 'say "hi".txt', b"")
    assert result.content_disposition == 'inline; filename="say \\"hi\\".txt"'


@pytest.mark.parametrize(
    "outcome,category",
    [
        (RedemptionOutcome.NOT_FOUND, ErrorCategory.LINK_NOT_FOUND),
        (RedemptionOutcome.ALREADY_REDEEMED, ErrorCategory.ALREADY_DOWNLOADED),
        (RedemptionOutcome.CONTENT_MISSING, ErrorCategory.CONTENT_MISSING),
        (RedemptionOutcome.INVALID_REQUEST, ErrorCategory.INVALID_REQUEST),
        (RedemptionOutcome.INTERNAL_ERROR, ErrorCategory.SYSTEM_ERROR),
    ],
)
def test_failure_categories(outcome, category):
    result = RedemptionResult.create_failure(outcome, "tok", "details")

    assert not result.success
    assert result.contents is None
    assert result.error_category is category
    assert result.to_dict()["error"] == category.value
