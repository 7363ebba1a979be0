"""
AMM Intent SDK - Mutation Calculator

Per-operation state changes an intent proposes. The calculator never reads
pool state: it only states the requested deltas and values. The runtime
applies them with its own invariant checks (non-negative balances,
conservation across a swap).

Policy per operation:

    ProvideLiquidity  lp_balances[acct] = a + b, token_a +a, token_b +b,
                      total_liquidity +(a - b)
    RemoveLiquidity   lp_balances[acct], token_a, token_b, total_liquidity
                      all -lp_tokens
    SwapTokens        from_token 1: token_a +in, token_b -in
                      from_token 2: token_a -in, token_b +in
    StakeLiquidity    staked_balances[acct] = amount,
                      stake_start_time[acct] = current_time (overwrite)
    ClaimRewards      rewards_pool -reward, token_a +reward
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Mapping, Optional

from .amm_types import (
    ClaimRewards,
    Intent,
    Operation,
    ProvideLiquidity,
    RemoveLiquidity,
    StakeLiquidity,
    SwapTokens,
    Token,
    check_word,
)
from .errors import InvalidAmount, InvalidTokenSelector
from .storage import (
    REWARDS_POOL,
    TOKEN_A_BALANCE,
    TOKEN_B_BALANCE,
    TOTAL_LIQUIDITY,
    StorageKey,
    lp_balance_key,
    stake_start_time_key,
    staked_balance_key,
    storage_key,
)

log = logging.getLogger(__name__)


class MutationKind(Enum):
    """SET writes the value; DELTA adds it to whatever is stored."""
    SET = "set"
    DELTA = "delta"


@dataclass(frozen=True)
class Mutation:
    """One proposed storage write."""
    key: StorageKey
    value: int
    kind: MutationKind = MutationKind.SET

    def to_dict(self) -> dict:
        """Wire form: {"key": [...], "value": [word]}."""
        return {"key": list(self.key), "value": [self.value]}


class MutationSet:
    """
    Ordered storage writes for one operation.

    Builder-style: set() and delta() return self so writes chain.
    A key may appear only once.
    """

    def __init__(self, operation: Operation):
        self.operation = operation
        self._mutations: Dict[StorageKey, Mutation] = {}

    def _add(self, key: StorageKey, value: int, kind: MutationKind) -> "MutationSet":
        key = tuple(key)
        if key in self._mutations:
            raise ValueError(f"Duplicate mutation for key {list(key)}")
        check_word(value, self.operation.value, f"mutation{list(key)}")
        self._mutations[key] = Mutation(key, value, kind)
        return self

    def set(self, key: StorageKey, value: int) -> "MutationSet":
        return self._add(key, value, MutationKind.SET)

    def delta(self, key: StorageKey, value: int) -> "MutationSet":
        return self._add(key, value, MutationKind.DELTA)

    def get(self, key: StorageKey) -> Optional[Mutation]:
        return self._mutations.get(tuple(key))

    def keys(self) -> List[StorageKey]:
        return list(self._mutations)

    def __iter__(self) -> Iterator[Mutation]:
        return iter(self._mutations.values())

    def __len__(self) -> int:
        return len(self._mutations)

    def __contains__(self, key) -> bool:
        return tuple(key) in self._mutations

    def __eq__(self, other) -> bool:
        if not isinstance(other, MutationSet):
            return NotImplemented
        return (self.operation == other.operation
                and list(self) == list(other))

    def __repr__(self) -> str:
        return f"MutationSet({self.operation.value}, {list(self)!r})"

    def resolved(self, prior: Mapping[StorageKey, int]) -> "MutationSet":
        """
        Turn deltas into absolute values against known current state.

        Args:
            prior: Current stored words by key; missing keys count as 0

        Returns:
            New MutationSet containing only SET mutations

        Raises:
            InvalidAmount: If a resolved value leaves the word range
        """
        out = MutationSet(self.operation)
        for m in self:
            if m.kind is MutationKind.DELTA:
                out.set(m.key, prior.get(m.key, 0) + m.value)
            else:
                out.set(m.key, m.value)
        return out

    def to_list(self) -> List[dict]:
        return [m.to_dict() for m in self]


# ═══════════════════════════════════════════════════════════════════════════════
# PER-OPERATION POLICY
# ═══════════════════════════════════════════════════════════════════════════════

def provide_liquidity(intent: ProvideLiquidity) -> MutationSet:
    a, b = intent.amount_a, intent.amount_b
    return (MutationSet(intent.operation)
            .set(lp_balance_key(intent.account), a + b)
            .delta(storage_key(TOKEN_A_BALANCE), a)
            .delta(storage_key(TOKEN_B_BALANCE), b)
            .delta(storage_key(TOTAL_LIQUIDITY), a - b))


def remove_liquidity(intent: RemoveLiquidity) -> MutationSet:
    lp = intent.lp_tokens
    return (MutationSet(intent.operation)
            .delta(lp_balance_key(intent.account), -lp)
            .delta(storage_key(TOKEN_A_BALANCE), -lp)
            .delta(storage_key(TOKEN_B_BALANCE), -lp)
            .delta(storage_key(TOTAL_LIQUIDITY), -lp))


def swap_tokens(intent: SwapTokens) -> MutationSet:
    try:
        token = Token(intent.from_token)
    except ValueError:
        raise InvalidTokenSelector(intent.from_token, intent.operation.value) from None

    amount = intent.amount_in
    a_delta = amount if token is Token.A else -amount
    return (MutationSet(intent.operation)
            .delta(storage_key(TOKEN_A_BALANCE), a_delta)
            .delta(storage_key(TOKEN_B_BALANCE), -a_delta))


def stake_liquidity(intent: StakeLiquidity) -> MutationSet:
    # Restaking overwrites the previous stake and its start time.
    return (MutationSet(intent.operation)
            .set(staked_balance_key(intent.account), intent.amount)
            .set(stake_start_time_key(intent.account), intent.current_time))


def claim_rewards(intent: ClaimRewards, reward_amount: Optional[int]) -> MutationSet:
    operation = intent.operation.value
    if reward_amount is None:
        raise InvalidAmount("A reward amount is required", operation, "reward_amount")
    check_word(reward_amount, operation, "reward_amount")
    if reward_amount < 0:
        raise InvalidAmount(f"reward_amount must not be negative, got {reward_amount}",
                            operation, "reward_amount")
    return (MutationSet(intent.operation)
            .delta(storage_key(REWARDS_POOL), -reward_amount)
            .delta(storage_key(TOKEN_A_BALANCE), reward_amount))


_CALCULATORS: Dict[Operation, Callable[[Intent], MutationSet]] = {
    Operation.PROVIDE_LIQUIDITY: provide_liquidity,
    Operation.REMOVE_LIQUIDITY: remove_liquidity,
    Operation.SWAP_TOKENS: swap_tokens,
    Operation.STAKE_LIQUIDITY: stake_liquidity,
}


def compute_mutations(intent: Intent, reward_amount: Optional[int] = None) -> MutationSet:
    """
    Compute the mutations an intent proposes.

    Args:
        intent: Constructed intent
        reward_amount: Reward to pay out, required for ClaimRewards only

    Returns:
        MutationSet for the intent's operation

    Raises:
        InvalidTokenSelector: SwapTokens with from_token outside {1, 2}
        InvalidAmount: Missing or out-of-range amounts
    """
    if intent.operation is Operation.CLAIM_REWARDS:
        mutations = claim_rewards(intent, reward_amount)
    else:
        mutations = _CALCULATORS[intent.operation](intent)
    log.debug(f"{intent.operation.value}: {len(mutations)} mutation(s)")
    return mutations
