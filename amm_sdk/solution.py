"""
AMM Intent SDK - Solution Assembler

Packs an intent, its signature and its mutations into the solution record
the constraint runtime validates.

Wire format (JSON):
    {
        "data": [
            {
                "predicate_to_solve": {"contract": "<HEX>", "predicate": "<HEX>"},
                "decision_variables": [[0, sig0, ..., sig7, recovery_id]],
                "transient_data": [{"key": [0], "value": [id0, id1, id2, id3]},
                                   {"key": [1], "value": [field1]}, ...],
                "state_mutations": [{"key": [...], "value": [word]}, ...]
            }
        ]
    }
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List

from .amm_types import Intent, PredicateAddress, RecoverableSignature, SignedIntent
from .encoding import public_var_values
from .mutations import MutationSet
from .resolver import AddressResolver

log = logging.getLogger(__name__)

# Arm index of the Signed variant in the contract's auth union.
AUTH_SIGNED_TAG = 0


@dataclass(frozen=True)
class KeyValue:
    """Transient data entry: public variable index -> its words."""
    key: tuple
    value: tuple

    def to_dict(self) -> dict:
        return {"key": list(self.key), "value": list(self.value)}

    @classmethod
    def from_dict(cls, data: dict) -> "KeyValue":
        return cls(tuple(data["key"]), tuple(data["value"]))


@dataclass
class SolutionData:
    """One predicate's part of a solution."""
    predicate_to_solve: PredicateAddress
    decision_variables: List[List[int]]
    transient_data: List[KeyValue]
    state_mutations: MutationSet

    def to_dict(self) -> dict:
        return {
            "predicate_to_solve": self.predicate_to_solve.to_dict(),
            "decision_variables": [list(v) for v in self.decision_variables],
            "transient_data": [kv.to_dict() for kv in self.transient_data],
            "state_mutations": self.state_mutations.to_list(),
        }


@dataclass
class Solution:
    """Signed, assembled artifact submitted to the builder."""
    data: List[SolutionData] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"data": [d.to_dict() for d in self.data]}

    def to_json(self, indent=None) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def auth_decision_variables(signature: RecoverableSignature) -> List[List[int]]:
    """Decision variables carrying the Signed auth proof."""
    return [[AUTH_SIGNED_TAG] + signature.to_words()]


def transient_data_for(intent: Intent) -> List[KeyValue]:
    """Public variables of an intent, re-derived from its canonical encoding."""
    return [KeyValue((i,), tuple(words))
            for i, words in enumerate(public_var_values(intent))]


def decode_transient(data: SolutionData) -> List[int]:
    """Flatten transient data back into the signed word sequence."""
    words: List[int] = []
    for kv in sorted(data.transient_data, key=lambda kv: kv.key):
        words.extend(kv.value)
    return words


def decode_signature(data: SolutionData) -> RecoverableSignature:
    """Read the signature back out of the decision variables."""
    auth = data.decision_variables[0]
    if not auth or auth[0] != AUTH_SIGNED_TAG:
        raise ValueError("Decision variables do not hold a signed auth proof")
    return RecoverableSignature.from_words(list(auth[1:]))


class SolutionAssembler:
    """
    Builds one-element solutions for intents.

    Usage:
        assembler = SolutionAssembler(resolver)
        solution = assembler.assemble(intent, signature, mutations)
    """

    def __init__(self, resolver: AddressResolver):
        self.resolver = resolver

    def assemble(self, intent: Intent, signature: RecoverableSignature,
                 mutations: MutationSet) -> Solution:
        """
        Assemble the solution for a signed intent.

        Args:
            intent: The intent that was signed
            signature: Signature over encode_for_signing(intent)
            mutations: MutationSet computed for the same intent

        Returns:
            Solution with exactly one SolutionData

        Raises:
            PredicateNotFound: If the operation's predicate cannot be resolved
            ValueError: If the mutations belong to a different operation
        """
        if mutations.operation is not intent.operation:
            raise ValueError(f"Mutations for {mutations.operation.value} cannot solve "
                             f"{intent.operation.value}")

        address = self.resolver.resolve(intent.operation)
        data = SolutionData(
            predicate_to_solve=address,
            decision_variables=auth_decision_variables(signature),
            transient_data=transient_data_for(intent),
            state_mutations=mutations,
        )
        log.debug(f"Assembled {intent.operation.value} solution for {intent.account}")
        return Solution(data=[data])

    def assemble_signed(self, signed: SignedIntent, mutations: MutationSet) -> Solution:
        return self.assemble(signed.intent, signed.signature, mutations)
