"""
AMM Intent SDK

Signed intents and solutions for a liquidity-pool contract.

Architecture:
  - Intents (provide/remove liquidity, swap, stake, claim) are built and
    signed OFF-CHAIN by this SDK
  - Solutions carry the signature, the signed payload and the proposed
    state mutations to the builder
  - The constraint runtime is the authority: it checks and applies them

Usage:
    from amm_sdk import Wallet, IntentPipeline, BuilderClient, Operation
    from amm_sdk import StaticAddressResolver

    resolver = StaticAddressResolver.from_file("addresses.json")
    builder = BuilderClient("http://localhost:3554")

    with Wallet("~/.amm-sdk/wallet").unlock(password) as keys:
        pipeline = IntentPipeline(keys, resolver, builder)
        ca = pipeline.submit(Operation.PROVIDE_LIQUIDITY, "alice",
                             amount_a=10, amount_b=10)
"""

from .amm_types import (
    AccountId,
    ClaimRewards,
    Intent,
    Operation,
    PredicateAddress,
    ProvideLiquidity,
    PublicKey,
    RecoverableSignature,
    RemoveLiquidity,
    SignedIntent,
    StakeLiquidity,
    SwapTokens,
    Token,
)
from .errors import (
    AccountMismatch,
    AmmError,
    CompilationFailed,
    InvalidAmount,
    InvalidKeyKind,
    InvalidTokenSelector,
    KeyNotFound,
    PredicateNotFound,
    SigningFailed,
    SubmissionFailed,
    UnexpectedQueryShape,
    WalletLocked,
)
from .identity import derive_account_id, recover_account_id
from .encoding import encode_for_signing
from .mutations import Mutation, MutationKind, MutationSet, compute_mutations
from .solution import Solution, SolutionAssembler, SolutionData, decode_transient
from .resolver import AddressResolver, PintProjectResolver, StaticAddressResolver
from .rest_client import BuilderClient, NodeClient, SolutionSubmitter
from .storage import balance, balance_key, lp_balance_key, nonce, nonce_key
from .wallet import Wallet
from .pipeline import IntentPipeline, SignedSolution, Stage

__version__ = "0.1.0"
__all__ = [
    # Types
    "AccountId", "PublicKey", "RecoverableSignature", "PredicateAddress",
    "Operation", "Token", "Intent", "SignedIntent",
    "ProvideLiquidity", "RemoveLiquidity", "SwapTokens", "StakeLiquidity", "ClaimRewards",
    # Errors
    "AmmError", "InvalidKeyKind", "InvalidTokenSelector", "InvalidAmount",
    "PredicateNotFound", "CompilationFailed", "KeyNotFound", "WalletLocked",
    "SigningFailed", "AccountMismatch", "UnexpectedQueryShape", "SubmissionFailed",
    # Core
    "derive_account_id", "recover_account_id", "encode_for_signing",
    "Mutation", "MutationKind", "MutationSet", "compute_mutations",
    "Solution", "SolutionData", "SolutionAssembler", "decode_transient",
    # Collaborators
    "AddressResolver", "StaticAddressResolver", "PintProjectResolver",
    "SolutionSubmitter", "BuilderClient", "NodeClient", "Wallet",
    "IntentPipeline", "SignedSolution", "Stage",
    # Queries
    "balance_key", "lp_balance_key", "nonce_key", "balance", "nonce",
]
