"""
Hypothesis strategies for logship property-based testing.

These strategies generate tokens, tags and payloads.
"""

import string

from hypothesis import strategies as st

# =============================================================================
# Token Strategies
# =============================================================================

# Loggly customer tokens are UUID-shaped
tokens = st.uuids().map(str)

# Tokens that must be rejected before any I/O
missing_tokens = st.one_of(st.none(), st.just(""))

# =============================================================================
# Tag Strategies
# =============================================================================

_TAG_ALPHABET = string.ascii_letters + string.digits + ":-_."

tags = st.text(alphabet=_TAG_ALPHABET, min_size=1, max_size=20)

tag_lists = st.lists(tags, max_size=6)

# =============================================================================
# Payload Strategies
# =============================================================================

messages = st.text(max_size=200)

json_values = st.recursive(
    st.one_of(
        st.none(),
        st.booleans(),
        st.integers(min_value=-(2**53), max_value=2**53),
        st.floats(allow_nan=False, allow_infinity=False),
        st.text(max_size=30),
    ),
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.text(max_size=10), children, max_size=4),
    ),
    max_leaves=15,
)

records = st.dictionaries(st.text(max_size=15), json_values, max_size=6)
