"""
Request Guards

Decorators applied to API routes before any storage work happens:
a static shared-secret check on the X-Api-Key header, and a check that
the request comes from a usable network address.
"""

import hmac
import ipaddress
from functools import wraps
from typing import Optional

from flask import current_app, g, request

from onetime.domain.errors import ErrorCategory, create_error_response

API_KEY_HEADER = "X-Api-Key"


def require_api_key(config_attr: str):
    """
    Decorator rejecting requests whose X-Api-Key header does not match
    the configured key.

    Args:
        config_attr: Name of the OnetimeConfig attribute holding the key
                     ('files_api_key' or 'links_api_key')

    Usage:
        @require_api_key("files_api_key")
        def get(self):
            pass
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            expected = getattr(current_app.onetime_config, config_attr, "")
            provided = request.headers.get(API_KEY_HEADER, "")

            # An unset key locks the endpoint instead of opening it
            if not expected or not hmac.compare_digest(
                provided.encode("utf-8"), expected.encode("utf-8")
            ):
                current_app.logger.info(
                    f"Rejected {request.method} {request.path}: invalid or missing api key"
                )
                return create_error_response(
                    ErrorCategory.UNAUTHORIZED,
                    "Invalid or missing api key!",
                    status_code=401,
                )
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_remote_address(f):
    """
    Decorator rejecting requests without a usable client address with
    HTTP 429. The accepted address is stored on flask.g.client_ip.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        client_ip = _extract_client_ip(
            request, current_app.onetime_config.trust_forwarded_for
        )
        if not is_usable_address(client_ip):
            current_app.logger.info(
                f"Rejected {request.method} {request.path}: unusable address {client_ip!r}"
            )
            return create_error_response(
                ErrorCategory.REMOTE_ADDRESS_REJECTED,
                f"Unusable remote address {client_ip!r}",
                status_code=429,
            )
        g.client_ip = client_ip
        return f(*args, **kwargs)

    return decorated_function


def is_usable_address(address: Optional[str]) -> bool:
    """True for a parseable IPv4/IPv6 address that is not 0.0.0.0 or ::."""
    if not address:
        return False
    try:
        parsed = ipaddress.ip_address(address)
    except ValueError:
        return False
    return not parsed.is_unspecified


def _extract_client_ip(request, trust_forwarded_for: bool = False) -> Optional[str]:
    """
    Extract client IP from request.

    The first X-Forwarded-For hop is used only when the deployment sits
    behind a trusted proxy; otherwise the socket peer address is used.

    Args:
        request: Flask request object
        trust_forwarded_for: Whether X-Forwarded-For may be believed

    Returns:
        Client IP address as string, or None when unknown
    """
    if trust_forwarded_for:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # Format: "client, proxy1, proxy2"
            return forwarded_for.split(",")[0].strip()

    return request.remote_addr
