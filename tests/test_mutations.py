import pytest

from amm_sdk.amm_types import (
    ClaimRewards,
    Operation,
    ProvideLiquidity,
    RemoveLiquidity,
    StakeLiquidity,
    SwapTokens,
)
from amm_sdk.errors import InvalidAmount, InvalidTokenSelector
from amm_sdk.mutations import MutationKind, MutationSet, compute_mutations
from amm_sdk.storage import (
    lp_balance_key,
    stake_start_time_key,
    staked_balance_key,
    storage_key,
)
from amm_sdk.words import WORD_MAX

TOKEN_A = storage_key("token_a_balance")
TOKEN_B = storage_key("token_b_balance")
TOTAL = storage_key("total_liquidity")
REWARDS = storage_key("rewards_pool")


def as_table(mutations: MutationSet) -> dict:
    return {m.key: (m.kind, m.value) for m in mutations}


def test_provide_liquidity(alice) -> None:
    mutations = compute_mutations(ProvideLiquidity(alice, amount_a=10, amount_b=10))
    assert as_table(mutations) == {
        lp_balance_key(alice): (MutationKind.SET, 20),
        TOKEN_A: (MutationKind.DELTA, 10),
        TOKEN_B: (MutationKind.DELTA, 10),
        TOTAL: (MutationKind.DELTA, 0),
    }


def test_provide_liquidity_total_tracks_difference(alice) -> None:
    mutations = compute_mutations(ProvideLiquidity(alice, amount_a=3, amount_b=8))
    assert mutations.get(TOTAL).value == -5


def test_remove_liquidity_is_inverse_of_provide(alice) -> None:
    mutations = compute_mutations(RemoveLiquidity(alice, lp_tokens=7))
    assert as_table(mutations) == {
        lp_balance_key(alice): (MutationKind.DELTA, -7),
        TOKEN_A: (MutationKind.DELTA, -7),
        TOKEN_B: (MutationKind.DELTA, -7),
        TOTAL: (MutationKind.DELTA, -7),
    }


def test_swap_a_in_b_out(alice) -> None:
    mutations = compute_mutations(SwapTokens(alice, from_token=1, amount_in=100))
    assert as_table(mutations) == {
        TOKEN_A: (MutationKind.DELTA, 100),
        TOKEN_B: (MutationKind.DELTA, -100),
    }


def test_swap_b_in_a_out(alice) -> None:
    mutations = compute_mutations(SwapTokens(alice, from_token=2, amount_in=100))
    assert as_table(mutations) == {
        TOKEN_A: (MutationKind.DELTA, -100),
        TOKEN_B: (MutationKind.DELTA, 100),
    }


def test_swap_conserves_value(alice) -> None:
    for token in (1, 2):
        mutations = compute_mutations(SwapTokens(alice, from_token=token, amount_in=42))
        assert sum(m.value for m in mutations) == 0


@pytest.mark.parametrize("selector", [0, 3, -1, 255])
def test_swap_rejects_unknown_selector(alice, selector) -> None:
    with pytest.raises(InvalidTokenSelector) as exc:
        compute_mutations(SwapTokens(alice, from_token=selector, amount_in=100))
    assert exc.value.selector == selector
    assert exc.value.field == "from_token"


def test_stake_overwrites_rather_than_accumulates(alice) -> None:
    first = compute_mutations(StakeLiquidity(alice, amount=100, current_time=1000))
    second = compute_mutations(StakeLiquidity(alice, amount=40, current_time=2000))

    state = {}
    for mutations in (first, second):
        for m in mutations:
            assert m.kind is MutationKind.SET
            state[m.key] = m.value

    assert state[staked_balance_key(alice)] == 40
    assert state[stake_start_time_key(alice)] == 2000


def test_stake_keys_are_per_account(alice, bob) -> None:
    a = compute_mutations(StakeLiquidity(alice, amount=1, current_time=1))
    b = compute_mutations(StakeLiquidity(bob, amount=1, current_time=1))
    assert set(a.keys()).isdisjoint(b.keys())


def test_claim_rewards_moves_reward(alice) -> None:
    mutations = compute_mutations(ClaimRewards(alice, current_time=5), reward_amount=10)
    assert as_table(mutations) == {
        REWARDS: (MutationKind.DELTA, -10),
        TOKEN_A: (MutationKind.DELTA, 10),
    }


@pytest.mark.parametrize("reward", [None, -1, WORD_MAX + 1])
def test_claim_rewards_needs_valid_reward(alice, reward) -> None:
    with pytest.raises(InvalidAmount):
        compute_mutations(ClaimRewards(alice, current_time=5), reward_amount=reward)


def test_zero_amounts_are_no_ops(alice) -> None:
    mutations = compute_mutations(SwapTokens(alice, from_token=1, amount_in=0))
    assert [m.value for m in mutations] == [0, 0]


def test_overflowing_sum_is_rejected(alice) -> None:
    with pytest.raises(InvalidAmount):
        compute_mutations(ProvideLiquidity(alice, amount_a=WORD_MAX, amount_b=1))


def test_duplicate_keys_are_rejected() -> None:
    mutations = MutationSet(Operation.SWAP_TOKENS).delta(TOKEN_A, 1)
    with pytest.raises(ValueError):
        mutations.set(TOKEN_A, 2)


def test_resolved_applies_deltas_to_prior_state(alice) -> None:
    mutations = compute_mutations(ProvideLiquidity(alice, amount_a=10, amount_b=4))
    resolved = mutations.resolved({TOKEN_A: 1000, TOKEN_B: 500, lp_balance_key(alice): 99})
    assert as_table(resolved) == {
        lp_balance_key(alice): (MutationKind.SET, 14),
        TOKEN_A: (MutationKind.SET, 1010),
        TOKEN_B: (MutationKind.SET, 504),
        TOTAL: (MutationKind.SET, 6),
    }


def test_mutation_wire_form(alice) -> None:
    mutations = compute_mutations(SwapTokens(alice, from_token=1, amount_in=3))
    assert mutations.to_list() == [
        {"key": [0], "value": [3]},
        {"key": [1], "value": [-3]},
    ]
