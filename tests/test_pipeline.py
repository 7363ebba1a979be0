import logging

import pytest

from amm_sdk.amm_types import Operation, SwapTokens
from amm_sdk.errors import AccountMismatch, InvalidTokenSelector, KeyNotFound, PredicateNotFound
from amm_sdk.identity import recover_account_id
from amm_sdk.mutations import MutationKind
from amm_sdk.pipeline import IntentPipeline, Stage
from amm_sdk.resolver import StaticAddressResolver
from amm_sdk.solution import decode_signature, decode_transient
from amm_sdk.storage import storage_key


def test_submit_returns_content_address(unlocked, resolver, submitter) -> None:
    pipeline = IntentPipeline(unlocked, resolver, submitter)
    ca = pipeline.submit(Operation.PROVIDE_LIQUIDITY, "alice", amount_a=10, amount_b=10)

    assert len(submitter.solutions) == 1
    assert ca == submitter.submit_solution(submitter.solutions[0])


@pytest.mark.parametrize("operation, fields", [
    (Operation.PROVIDE_LIQUIDITY, {"amount_a": 10, "amount_b": 10}),
    (Operation.REMOVE_LIQUIDITY, {"lp_tokens": 4}),
    (Operation.SWAP_TOKENS, {"from_token": 2, "amount_in": 100}),
    (Operation.STAKE_LIQUIDITY, {"amount": 20, "current_time": 1700000000}),
    (Operation.CLAIM_REWARDS, {"current_time": 1700000500}),
])
def test_solution_verifies_like_the_runtime(unlocked, resolver, alice, operation, fields) -> None:
    built = IntentPipeline(unlocked, resolver).build(operation, "alice", **fields)
    data = built.solution.data[0]

    # Recover the signer from what the solution carries and compare with the payload's account.
    words = decode_transient(data)
    assert words[:4] == list(alice.words)
    assert recover_account_id(words, decode_signature(data)) == alice
    assert built.stage is Stage.ASSEMBLED


def test_intent_is_bound_to_signing_account(unlocked, resolver, alice, bob) -> None:
    pipeline = IntentPipeline(unlocked, resolver)
    assert pipeline.intent_for(Operation.CLAIM_REWARDS, "alice", current_time=1).account == alice
    assert pipeline.intent_for(Operation.CLAIM_REWARDS, "bob", current_time=1).account == bob


def test_claim_uses_configured_reward(unlocked, resolver) -> None:
    built = IntentPipeline(unlocked, resolver, reward_amount=25).build(
        Operation.CLAIM_REWARDS, "alice", current_time=1)
    assert built.mutations.get(storage_key("rewards_pool")).value == -25


def test_invalid_selector_halts_before_submission(unlocked, resolver, submitter) -> None:
    pipeline = IntentPipeline(unlocked, resolver, submitter)
    with pytest.raises(InvalidTokenSelector):
        pipeline.submit(Operation.SWAP_TOKENS, "alice", from_token=3, amount_in=100)
    assert submitter.solutions == []


def test_missing_predicate_halts_before_submission(unlocked, submitter) -> None:
    pipeline = IntentPipeline(unlocked, StaticAddressResolver({}), submitter)
    with pytest.raises(PredicateNotFound):
        pipeline.submit(Operation.REMOVE_LIQUIDITY, "alice", lp_tokens=1)
    assert submitter.solutions == []


def test_unknown_account_halts(unlocked, resolver, submitter) -> None:
    with pytest.raises(KeyNotFound):
        IntentPipeline(unlocked, resolver, submitter).submit(
            Operation.REMOVE_LIQUIDITY, "carol", lp_tokens=1)
    assert submitter.solutions == []


def test_prior_state_resolves_deltas(unlocked, resolver, alice) -> None:
    token_a, token_b = storage_key("token_a_balance"), storage_key("token_b_balance")
    intent = SwapTokens(alice, from_token=1, amount_in=100)
    built = IntentPipeline(unlocked, resolver).build_intent(
        intent, "alice", prior_state={token_a: 1000, token_b: 2000})

    assert [(m.key, m.kind, m.value) for m in built.mutations] == [
        (token_a, MutationKind.SET, 1100),
        (token_b, MutationKind.SET, 1900),
    ]


def test_submit_built_marks_stage(unlocked, resolver, submitter) -> None:
    pipeline = IntentPipeline(unlocked, resolver, submitter)
    built = pipeline.build(Operation.REMOVE_LIQUIDITY, "alice", lp_tokens=2)
    ca = pipeline.submit_built(built)
    assert built.stage is Stage.SUBMITTED
    assert built.content_address == ca


def test_submit_without_submitter(unlocked, resolver) -> None:
    pipeline = IntentPipeline(unlocked, resolver)
    with pytest.raises(RuntimeError):
        pipeline.submit(Operation.REMOVE_LIQUIDITY, "alice", lp_tokens=2)


def test_stage_transitions_are_logged(unlocked, resolver, submitter, caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="amm_sdk.pipeline"):
        IntentPipeline(unlocked, resolver, submitter).submit(
            Operation.STAKE_LIQUIDITY, "alice", amount=1, current_time=2)

    text = caplog.text
    for stage in Stage:
        assert f"StakeLiquidity {stage.value}" in text


def test_intent_for_another_account_is_not_signed(unlocked, resolver, submitter, bob) -> None:
    pipeline = IntentPipeline(unlocked, resolver, submitter)
    with pytest.raises(AccountMismatch) as exc:
        pipeline.build_intent(SwapTokens(bob, from_token=1, amount_in=100), "alice")

    assert exc.value.operation == "SwapTokens"
    assert exc.value.field == "account"
    assert submitter.solutions == []
