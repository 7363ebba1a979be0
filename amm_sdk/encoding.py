"""
AMM Intent SDK - Canonical Encoder

Turns an intent into the ordered word sequence that is signed and, unchanged,
embedded in the solution as transient data.

Word order (never reorder without a protocol version bump):

    ProvideLiquidity   [id0, id1, id2, id3, amount_a, amount_b]
    RemoveLiquidity    [id0, id1, id2, id3, lp_tokens]
    SwapTokens         [id0, id1, id2, id3, from_token, amount_in]
    StakeLiquidity     [id0, id1, id2, id3, amount, current_time]
    ClaimRewards       [id0, id1, id2, id3, current_time]
"""

from typing import Dict, List, Tuple

from .amm_types import INTENT_TYPES, Intent, Operation

ACCOUNT_WORDS = 4

# Public variable names in declaration order; "user" is the account.
SIGNING_SCHEMA: Dict[Operation, Tuple[str, ...]] = {
    op: ("user",) + cls.FIELDS for op, cls in INTENT_TYPES.items()
}


def encoded_length(operation: Operation) -> int:
    """Number of words encode_for_signing() yields for an operation."""
    return ACCOUNT_WORDS + len(SIGNING_SCHEMA[operation]) - 1


def encode_for_signing(intent: Intent) -> List[int]:
    """
    Encode an intent for signing.

    Args:
        intent: Any constructed intent

    Returns:
        Account words followed by the operation fields in declaration order
    """
    return list(intent.account.words) + intent.field_values()


def public_var_values(intent: Intent) -> List[List[int]]:
    """Encoded words grouped per public variable (account first)."""
    words = encode_for_signing(intent)
    groups = [words[:ACCOUNT_WORDS]]
    groups.extend([w] for w in words[ACCOUNT_WORDS:])
    return groups
