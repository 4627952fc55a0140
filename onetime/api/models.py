"""
API Models for request/response validation and Swagger documentation
"""

from flask_restx import fields

from onetime.api import api

# =============================================================================
# Request Models
# =============================================================================

create_link_request = api.model(
    "CreateLinkRequest",
    {
        "filename": fields.String(
            required=True,
            description="Name of a stored file",
            example="report.pdf",
        ),
        "note": fields.String(
            required=False,
            description="Free text kept with the link",
            example="for the auditors",
        ),
        "ttl_seconds": fields.Integer(
            required=False,
            description="Lifetime recorded on the link (informational only)",
            min=0,
        ),
    },
)

# =============================================================================
# Response Models
# =============================================================================

file_response = api.model(
    "File",
    {
        "filename": fields.String(description="Unique file name"),
        "contents_len": fields.Integer(description="Size of the stored contents in bytes"),
        "created_at": fields.Integer(description="First upload, ms since epoch"),
        "updated_at": fields.Integer(description="Latest upload, ms since epoch"),
    },
)

link_response = api.model(
    "Link",
    {
        "token": fields.String(description="Single-use download token"),
        "filename": fields.String(description="File served by this link"),
        "note": fields.String(description="Free text kept with the link", allow_null=True),
        "created_at": fields.Integer(description="Issue time, ms since epoch"),
        "expires_at": fields.Integer(description="Recorded expiry, ms since epoch", allow_null=True),
        "downloaded_at": fields.Integer(description="Redemption time, ms since epoch", allow_null=True),
        "ip_address": fields.String(description="Address of the redeeming client", allow_null=True),
    },
)

error_response = api.model(
    "ErrorResponse",
    {
        "error": fields.String(description="Error category"),
        "title": fields.String(description="Short error title"),
        "message": fields.String(description="User-facing explanation"),
        "action": fields.String(description="Suggested next step"),
    },
)
