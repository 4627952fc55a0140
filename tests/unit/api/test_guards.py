from unittest.mock import Mock

import pytest

from onetime.api.guards import _extract_client_ip, is_usable_address


@pytest.mark.parametrize(
    "address,usable",
    [
        ("1.2.3.4", True),
        ("127.0.0.1", True),
        ("2001:db8::1", True),
        ("0.0.0.0", False),
        ("::", False),
        ("", False),
        (None, False),
        ("localhost", False),
        ("1.2.3.4:5678", False),
    ],
)
def test_is_usable_address(address, usable):
    assert is_usable_address(address) is usable


def _request(remote_addr, forwarded_for=None):
    request = Mock()
    request.remote_addr = remote_addr
    request.headers = {"X-Forwarded-For": forwarded_for} if forwarded_for else {}
    return request


def test_socket_address_by_default():
    assert _extract_client_ip(_request("10.0.0.1", "9.9.9.9")) == "10.0.0.1"


def test_first_forwarded_hop_when_trusted():
    request = _request("10.0.0.1", " 9.9.9.9 , 10.0.0.1")
    assert _extract_client_ip(request, trust_forwarded_for=True) == "9.9.9.9"


def test_trusted_without_header_falls_back():
    assert _extract_client_ip(_request("10.0.0.1"), trust_forwarded_for=True) == "10.0.0.1"


def test_missing_remote_address():
    assert _extract_client_ip(_request(None)) is None
