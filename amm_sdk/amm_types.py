"""
AMM Intent SDK - Data Types

Intents, keys, signatures and predicate addresses for the AMM contract.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, List, Tuple, Type
import json

from .errors import InvalidAmount, InvalidKeyKind
from .words import is_word, words_from_bytes, words_to_bytes

SECP256K1 = "secp256k1"
COMPRESSED_KEY_SIZE = 33


class Operation(Enum):
    """The five intents the AMM contract accepts."""
    PROVIDE_LIQUIDITY = "ProvideLiquidity"
    REMOVE_LIQUIDITY = "RemoveLiquidity"
    SWAP_TOKENS = "SwapTokens"
    STAKE_LIQUIDITY = "StakeLiquidity"
    CLAIM_REWARDS = "ClaimRewards"


class Token(Enum):
    """Swap selector: which pool side the input amount goes to."""
    A = 1
    B = 2


def check_word(value, operation: str, field: str) -> int:
    """Validate that value fits in a word, raising InvalidAmount otherwise."""
    if not is_word(value):
        raise InvalidAmount(f"{value!r} is not a 64-bit integer word", operation, field)
    return value


@dataclass(frozen=True)
class AccountId:
    """
    Account identifier: four words hashed from the owner's public key.

    Used as the map key into every per-account storage map
    (lp_balances, staked_balances, stake_start_time, nonce).
    """
    words: Tuple[int, int, int, int]

    def __post_init__(self):
        words = tuple(self.words)
        if len(words) != 4 or not all(is_word(w) for w in words):
            raise ValueError(f"AccountId needs exactly four words, got {self.words!r}")
        object.__setattr__(self, "words", words)

    def __iter__(self):
        return iter(self.words)

    def to_hex(self) -> str:
        return words_to_bytes(self.words).hex()

    @classmethod
    def from_hex(cls, value: str) -> "AccountId":
        return cls(tuple(words_from_bytes(bytes.fromhex(value))))

    def __str__(self) -> str:
        return self.to_hex()


@dataclass(frozen=True)
class PublicKey:
    """Public key as handed out by the wallet (scheme + serialised bytes)."""
    scheme: str
    data: bytes

    def validate(self) -> None:
        if self.scheme != SECP256K1:
            raise InvalidKeyKind(f"Unsupported key scheme {self.scheme!r}", field="public_key")
        if len(self.data) != COMPRESSED_KEY_SIZE or self.data[0] not in (2, 3):
            raise InvalidKeyKind(
                f"Expected a {COMPRESSED_KEY_SIZE}-byte compressed secp256k1 key, "
                f"got {len(self.data)} bytes", field="public_key")

    def to_hex(self) -> str:
        return self.data.hex()


@dataclass(frozen=True)
class RecoverableSignature:
    """
    Compact secp256k1 signature (r || s) plus recovery id.

    Encoded for the contract as 9 words: the 64 compact bytes as 8
    big-endian words, then the recovery id.
    """
    compact: bytes
    recovery_id: int

    WORDS: ClassVar[int] = 9

    def __post_init__(self):
        if len(self.compact) != 64:
            raise ValueError(f"Compact signature must be 64 bytes, got {len(self.compact)}")
        if self.recovery_id not in (0, 1):
            raise ValueError(f"Invalid recovery id {self.recovery_id}")

    @property
    def r(self) -> int:
        return int.from_bytes(self.compact[:32], "big")

    @property
    def s(self) -> int:
        return int.from_bytes(self.compact[32:], "big")

    def to_words(self) -> List[int]:
        return words_from_bytes(self.compact) + [self.recovery_id]

    @classmethod
    def from_words(cls, words: List[int]) -> "RecoverableSignature":
        if len(words) != cls.WORDS:
            raise ValueError(f"Signature needs {cls.WORDS} words, got {len(words)}")
        return cls(words_to_bytes(words[:8]), words[8])

    def to_hex(self) -> str:
        return (self.compact + bytes([self.recovery_id])).hex()


@dataclass(frozen=True)
class PredicateAddress:
    """Contract + predicate content addresses (32 bytes each)."""
    contract: bytes
    predicate: bytes

    def __post_init__(self):
        if len(self.contract) != 32 or len(self.predicate) != 32:
            raise ValueError("Content addresses must be 32 bytes")

    def to_dict(self) -> dict:
        return {
            "contract": self.contract.hex().upper(),
            "predicate": self.predicate.hex().upper(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PredicateAddress":
        return cls(bytes.fromhex(data["contract"]), bytes.fromhex(data["predicate"]))


# ═══════════════════════════════════════════════════════════════════════════════
# INTENTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Intent:
    """
    A user-requested state change, prior to signing.

    Subclasses declare FIELDS in signing order; the account's four words
    always come first. Fields listed in NON_NEGATIVE reject negative values.
    """
    account: AccountId

    OPERATION: ClassVar[Operation]
    FIELDS: ClassVar[Tuple[str, ...]] = ()
    NON_NEGATIVE: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        if not isinstance(self.account, AccountId):
            raise TypeError(f"account must be an AccountId, got {type(self.account).__name__}")
        operation = self.OPERATION.value
        for name in self.FIELDS:
            value = check_word(getattr(self, name), operation, name)
            if name in self.NON_NEGATIVE and value < 0:
                raise InvalidAmount(f"{name} must not be negative, got {value}",
                                    operation, name)

    @property
    def operation(self) -> Operation:
        return self.OPERATION

    def field_values(self) -> List[int]:
        return [getattr(self, name) for name in self.FIELDS]

    def to_dict(self) -> dict:
        data = {"operation": self.OPERATION.value, "account": self.account.to_hex()}
        for name in self.FIELDS:
            data[name] = getattr(self, name)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


@dataclass(frozen=True)
class ProvideLiquidity(Intent):
    amount_a: int
    amount_b: int

    OPERATION: ClassVar[Operation] = Operation.PROVIDE_LIQUIDITY
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount_a", "amount_b")
    NON_NEGATIVE: ClassVar[Tuple[str, ...]] = ("amount_a", "amount_b")


@dataclass(frozen=True)
class RemoveLiquidity(Intent):
    lp_tokens: int

    OPERATION: ClassVar[Operation] = Operation.REMOVE_LIQUIDITY
    FIELDS: ClassVar[Tuple[str, ...]] = ("lp_tokens",)
    NON_NEGATIVE: ClassVar[Tuple[str, ...]] = ("lp_tokens",)


@dataclass(frozen=True)
class SwapTokens(Intent):
    from_token: int
    amount_in: int

    OPERATION: ClassVar[Operation] = Operation.SWAP_TOKENS
    FIELDS: ClassVar[Tuple[str, ...]] = ("from_token", "amount_in")
    NON_NEGATIVE: ClassVar[Tuple[str, ...]] = ("amount_in",)


@dataclass(frozen=True)
class StakeLiquidity(Intent):
    amount: int
    current_time: int

    OPERATION: ClassVar[Operation] = Operation.STAKE_LIQUIDITY
    FIELDS: ClassVar[Tuple[str, ...]] = ("amount", "current_time")
    NON_NEGATIVE: ClassVar[Tuple[str, ...]] = ("amount",)


@dataclass(frozen=True)
class ClaimRewards(Intent):
    current_time: int

    OPERATION: ClassVar[Operation] = Operation.CLAIM_REWARDS
    FIELDS: ClassVar[Tuple[str, ...]] = ("current_time",)


INTENT_TYPES: Dict[Operation, Type[Intent]] = {
    cls.OPERATION: cls
    for cls in (ProvideLiquidity, RemoveLiquidity, SwapTokens, StakeLiquidity, ClaimRewards)
}


def intent_from_dict(data: dict) -> Intent:
    """Build an intent from its to_dict() form."""
    cls = INTENT_TYPES[Operation(data["operation"])]
    fields = {name: data[name] for name in cls.FIELDS}
    return cls(account=AccountId.from_hex(data["account"]), **fields)


@dataclass(frozen=True)
class SignedIntent:
    """An intent plus the recoverable signature over its canonical words."""
    intent: Intent
    signature: RecoverableSignature
