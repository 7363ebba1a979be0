"""
AMM Intent SDK - Intent Pipeline

Drives one intent through

    Constructed -> Encoded -> Signed -> Assembled -> Submitted

Any failure stops the pipeline at the stage it happened; a solution is
only handed to the submitter once it is fully assembled.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .amm_types import INTENT_TYPES, Intent, Operation, RecoverableSignature, SignedIntent
from .config import DEFAULT_REWARD_AMOUNT
from .encoding import encode_for_signing
from .errors import AccountMismatch
from .identity import derive_account_id
from .mutations import MutationSet, compute_mutations
from .resolver import AddressResolver
from .rest_client import SolutionSubmitter
from .solution import Solution, SolutionAssembler
from .storage import StorageKey
from .wallet import UnlockedWallet, mask_secret

log = logging.getLogger(__name__)


class Stage(Enum):
    CONSTRUCTED = "constructed"
    ENCODED = "encoded"
    SIGNED = "signed"
    ASSEMBLED = "assembled"
    SUBMITTED = "submitted"


@dataclass
class SignedSolution:
    """Result of building an intent: everything needed to submit or inspect it."""
    signed: SignedIntent
    mutations: MutationSet
    solution: Solution
    stage: Stage = Stage.ASSEMBLED
    content_address: Optional[str] = None

    @property
    def intent(self) -> Intent:
        return self.signed.intent

    @property
    def signature(self) -> RecoverableSignature:
        return self.signed.signature


class IntentPipeline:
    """
    Builds and submits solutions for one unlocked wallet.

    Usage:
        with Wallet(path).unlock(password) as keys:
            pipeline = IntentPipeline(keys, resolver, BuilderClient(url))
            ca = pipeline.submit(Operation.SWAP_TOKENS, "alice",
                                 from_token=1, amount_in=100)
    """

    def __init__(self, wallet: UnlockedWallet, resolver: AddressResolver,
                 submitter: Optional[SolutionSubmitter] = None,
                 reward_amount: int = DEFAULT_REWARD_AMOUNT):
        self.wallet = wallet
        self.assembler = SolutionAssembler(resolver)
        self.submitter = submitter
        self.reward_amount = reward_amount

    def intent_for(self, operation: Operation, account_name: str, **fields) -> Intent:
        """Construct an intent for a wallet account."""
        account = derive_account_id(self.wallet.get_public_key(account_name))
        intent = INTENT_TYPES[operation](account=account, **fields)
        log.debug(f"{operation.value} {Stage.CONSTRUCTED.value} for {account_name}")
        return intent

    def build_intent(self, intent: Intent, account_name: str,
                     prior_state: Optional[Mapping[StorageKey, int]] = None) -> SignedSolution:
        """
        Encode, sign and assemble an already constructed intent.

        Args:
            intent: Intent whose account belongs to account_name
            account_name: Wallet account that signs
            prior_state: Current storage values; when given, deltas are
                resolved to absolute values before assembly

        Returns:
            SignedSolution at stage ASSEMBLED

        Raises:
            AccountMismatch: If intent.account is not account_name's account id
        """
        operation = intent.operation.value
        signer = derive_account_id(self.wallet.get_public_key(account_name))
        if signer != intent.account:
            raise AccountMismatch(
                f"Intent account {intent.account.to_hex()} does not belong to {account_name}",
                operation, "account")

        words = encode_for_signing(intent)
        mutations = compute_mutations(intent, self.reward_amount)
        if prior_state is not None:
            mutations = mutations.resolved(prior_state)
        log.debug(f"{operation} {Stage.ENCODED.value}: {len(words)} word(s)")

        signature = self.wallet.sign(words, account_name)
        log.debug(f"{operation} {Stage.SIGNED.value}: {mask_secret(signature.to_hex())}")

        solution = self.assembler.assemble(intent, signature, mutations)
        log.info(f"{operation} {Stage.ASSEMBLED.value} for {account_name}")

        return SignedSolution(SignedIntent(intent, signature), mutations, solution)

    def build(self, operation: Operation, account_name: str, **fields) -> SignedSolution:
        """Construct an intent for account_name and build its solution."""
        intent = self.intent_for(operation, account_name, **fields)
        return self.build_intent(intent, account_name)

    def submit_built(self, built: SignedSolution) -> str:
        """Hand an assembled solution to the submitter."""
        if self.submitter is None:
            raise RuntimeError("No submitter configured")
        content_address = self.submitter.submit_solution(built.solution)
        built.content_address = content_address
        built.stage = Stage.SUBMITTED
        log.info(f"{built.intent.operation.value} {Stage.SUBMITTED.value}: {content_address}")
        return content_address

    def submit(self, operation: Operation, account_name: str, **fields) -> str:
        """Build and submit; returns the solution's content address."""
        return self.submit_built(self.build(operation, account_name, **fields))
