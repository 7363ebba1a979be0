"""
AMM Intent SDK - Identity

Derives the AccountId used as storage map key from a wallet public key,
and recovers it back from a signature.

Derivation:
    1. Encode the 33-byte compressed key as 5 words: bytes 0..31 as four
       big-endian words, byte 32 in the low byte of a fifth word.
    2. SHA-256 over those words (hash_words).
    3. Read the 32-byte digest back as four big-endian words.
"""

from typing import List, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from .amm_types import SECP256K1, AccountId, PublicKey, RecoverableSignature
from .errors import InvalidKeyKind, SigningFailed
from .words import hash_words, words_from_bytes


def _as_public_key(public_key: Union[PublicKey, bytes]) -> PublicKey:
    if isinstance(public_key, PublicKey):
        key = public_key
    elif isinstance(public_key, (bytes, bytearray)):
        key = PublicKey(SECP256K1, bytes(public_key))
    else:
        raise InvalidKeyKind(f"Unsupported public key type {type(public_key).__name__}",
                             field="public_key")
    key.validate()
    return key


def encode_public_key(public_key: Union[PublicKey, bytes]) -> List[int]:
    """Canonical 5-word encoding of a compressed secp256k1 key."""
    data = _as_public_key(public_key).data
    head = words_from_bytes(data[:32])
    tail = words_from_bytes(bytes(7) + data[32:])
    return head + tail


def derive_account_id(public_key: Union[PublicKey, bytes]) -> AccountId:
    """
    Derive the account identifier for a public key.

    Args:
        public_key: PublicKey from the wallet, or raw compressed key bytes

    Returns:
        AccountId (four words)

    Raises:
        InvalidKeyKind: If the key is not a compressed secp256k1 key
    """
    digest = hash_words(encode_public_key(public_key))
    return AccountId(tuple(words_from_bytes(digest)))


def recover_public_key(words: List[int], signature: RecoverableSignature) -> PublicKey:
    """Recover the signer's public key from the signed words."""
    try:
        sig = keys.Signature(vrs=(signature.recovery_id, signature.r, signature.s))
        recovered = sig.recover_public_key_from_msg_hash(hash_words(words))
    except (BadSignature, ValidationError) as e:
        raise SigningFailed(f"Cannot recover public key: {e}", field="signature")
    return PublicKey(SECP256K1, recovered.to_compressed_bytes())


def recover_account_id(words: List[int], signature: RecoverableSignature) -> AccountId:
    """
    Recover the AccountId that signed words.

    The runtime performs this same check: the recovered key must hash to
    the account carried in the signed payload.
    """
    return derive_account_id(recover_public_key(words, signature))
