"""
AMM Intent SDK - Storage Layout

Storage keys for the AMM contract and decoders for raw state queries.

Storage variables are addressed by declaration index. A scalar lives at
key [index]; a map entry lives at [index, *account_words].
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .amm_types import AccountId
from .errors import UnexpectedQueryShape

StorageKey = Tuple[int, ...]

# ═══════════════════════════════════════════════════════════════════════════════
# LAYOUT (declaration order of the contract's storage block)
# ═══════════════════════════════════════════════════════════════════════════════

TOKEN_A_BALANCE = "token_a_balance"
TOKEN_B_BALANCE = "token_b_balance"
TOTAL_LIQUIDITY = "total_liquidity"
REWARDS_POOL = "rewards_pool"
LP_BALANCES = "lp_balances"
STAKED_BALANCES = "staked_balances"
STAKE_START_TIME = "stake_start_time"
NONCE = "nonce"

STORAGE_LAYOUT: Dict[str, int] = {
    TOKEN_A_BALANCE: 0,
    TOKEN_B_BALANCE: 1,
    TOTAL_LIQUIDITY: 2,
    REWARDS_POOL: 3,
    LP_BALANCES: 4,
    STAKED_BALANCES: 5,
    STAKE_START_TIME: 6,
    NONCE: 7,
}

MAP_VARIABLES = frozenset({LP_BALANCES, STAKED_BALANCES, STAKE_START_TIME, NONCE})


def storage_key(name: str, account: Optional[AccountId] = None) -> StorageKey:
    """
    Compute the storage key for a variable.

    Args:
        name: Storage variable name
        account: Map key, required for map variables and rejected for scalars

    Returns:
        Key as a tuple of words

    Raises:
        ValueError: Unknown variable, or account given/missing inconsistently
    """
    if name not in STORAGE_LAYOUT:
        raise ValueError(f"Unknown storage variable: {name}")
    index = STORAGE_LAYOUT[name]
    if name in MAP_VARIABLES:
        if account is None:
            raise ValueError(f"{name} is a map and needs an account key")
        return (index,) + account.words
    if account is not None:
        raise ValueError(f"{name} is a scalar and takes no account key")
    return (index,)


def lp_balance_key(account: AccountId) -> StorageKey:
    """Key for an account's LP balance."""
    return storage_key(LP_BALANCES, account)


def balance_key(account: AccountId) -> StorageKey:
    """Key for an account's pool balance (its LP token holding)."""
    return lp_balance_key(account)


def staked_balance_key(account: AccountId) -> StorageKey:
    return storage_key(STAKED_BALANCES, account)


def stake_start_time_key(account: AccountId) -> StorageKey:
    return storage_key(STAKE_START_TIME, account)


def nonce_key(account: AccountId) -> StorageKey:
    """Key for an account's nonce."""
    return storage_key(NONCE, account)


# ═══════════════════════════════════════════════════════════════════════════════
# QUERY DECODING
# ═══════════════════════════════════════════════════════════════════════════════

def decode_word(result: Optional[Sequence[int]], what: str = "value") -> int:
    """
    Decode a raw state query result into a single word.

    Args:
        result: None (absent), [] (empty) or [word]
        what: Name used in the error message

    Returns:
        The word, or 0 when nothing is stored

    Raises:
        UnexpectedQueryShape: If more than one word came back
    """
    if result is None:
        return 0
    values: List[int] = list(result)
    if not values:
        return 0
    if len(values) == 1:
        return values[0]
    raise UnexpectedQueryShape(f"Expected single word, got: {values}", field=what)


def nonce(result: Optional[Sequence[int]]) -> int:
    """Extract the nonce from a query result."""
    return decode_word(result, "nonce")


def balance(result: Optional[Sequence[int]]) -> int:
    """Extract a balance from a query result."""
    return decode_word(result, "balance")
