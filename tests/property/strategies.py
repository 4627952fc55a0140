"""
Hypothesis Strategies for Property-Based Testing

Custom strategies for generating domain objects and test data.
"""

import string

from hypothesis import strategies as st

from onetime.domain.entities import OnetimeFile, OnetimeLink

# Timestamps fit the 16 hex digits of a token prefix
MAX_TIMESTAMP = 2**64 - 1


# =============================================================================
# Primitive Strategies
# =============================================================================

timestamps = st.integers(min_value=0, max_value=MAX_TIMESTAMP)

realistic_timestamps = st.integers(min_value=1_500_000_000_000, max_value=4_000_000_000_000)


@st.composite
def filenames(draw) -> str:
    """Generate non-empty filenames, including unicode and quote characters."""
    stem = draw(
        st.text(
            alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\x00"),
            min_size=1,
            max_size=40,
        )
    )
    extension = draw(st.sampled_from(["", ".pdf", ".txt", ".tar.gz"]))
    return stem + extension


@st.composite
def ipv4_addresses(draw) -> str:
    octets = draw(st.lists(st.integers(min_value=1, max_value=254), min_size=4, max_size=4))
    return ".".join(str(o) for o in octets)


tokens = st.text(alphabet=string.hexdigits.lower()[:16], min_size=32, max_size=32)


# =============================================================================
# Entity Strategies
# =============================================================================

@st.composite
def onetime_files(draw) -> OnetimeFile:
    created_at = draw(realistic_timestamps)
    return OnetimeFile(
        filename=draw(filenames()),
        contents=draw(st.binary(max_size=256)),
        created_at=created_at,
        updated_at=created_at + draw(st.integers(min_value=0, max_value=10_000)),
    )


@st.composite
def onetime_links(draw, redeemed=None) -> OnetimeLink:
    """Generate links; redeemed=None mixes issued and redeemed ones."""
    if redeemed is None:
        redeemed = draw(st.booleans())
    created_at = draw(realistic_timestamps)
    return OnetimeLink(
        token=draw(tokens),
        filename=draw(filenames()),
        created_at=created_at,
        downloaded_at=created_at + draw(st.integers(min_value=0, max_value=10_000)) if redeemed else None,
        ip_address=draw(ipv4_addresses()) if redeemed else None,
        note=draw(st.none() | st.text(max_size=50)),
        expires_at=draw(st.none() | st.integers(min_value=created_at, max_value=MAX_TIMESTAMP)),
    )
