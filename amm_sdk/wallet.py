"""
AMM Intent SDK - Wallet

Directory of encrypted secp256k1 keys, one eth_account keystore file
(<account>.json) per account name.

Key material is only reachable through an UnlockedWallet handle obtained
from Wallet.unlock(). Leaving the `with` block zeroes the password and any
decrypted keys, and the handle refuses further use.

Usage:
    wallet = Wallet("~/.amm-sdk/wallet")
    with wallet.unlock(password) as keys:
        public_key = keys.get_public_key("alice")
        signature = keys.sign(words, "alice")
"""

import json
import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from eth_account import Account
from eth_keys import keys

from .amm_types import SECP256K1, PublicKey, RecoverableSignature
from .errors import KeyNotFound, SigningFailed, WalletLocked
from .words import hash_words

log = logging.getLogger(__name__)

DEFAULT_WALLET_DIR = Path.home() / ".amm-sdk" / "wallet"

_ACCOUNT_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def mask_secret(secret: str, visible_prefix: int = 8, visible_suffix: int = 4) -> str:
    """Mask a secret for safe logging. Never log full signatures or keys."""
    if not secret or len(secret) <= visible_prefix + visible_suffix:
        return "***"
    return f"{secret[:visible_prefix]}...{secret[-visible_suffix:]}"


def _zero(buf: bytearray) -> None:
    for i in range(len(buf)):
        buf[i] = 0


class Wallet:
    """Keystore directory. Holds no secrets itself."""

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path).expanduser() if path else DEFAULT_WALLET_DIR

    @contextmanager
    def unlock(self, password: str) -> Iterator["UnlockedWallet"]:
        """Open a scoped handle; key material is wiped on every exit path."""
        handle = UnlockedWallet(self.path, password)
        try:
            yield handle
        finally:
            handle.lock()


class UnlockedWallet:
    """Handle holding the wallet password and decrypted keys while open."""

    def __init__(self, path: Path, password: str):
        self.path = path
        self._password = bytearray(password.encode("utf-8"))
        self._keys: Dict[str, bytearray] = {}
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    def _require_unlocked(self) -> None:
        if self._locked:
            raise WalletLocked("Wallet handle has been closed")

    def _keyfile(self, name: str) -> Path:
        if not _ACCOUNT_NAME.match(name):
            raise KeyNotFound(f"Invalid account name {name!r}", field="account")
        return self.path / f"{name}.json"

    def accounts(self) -> List[str]:
        """Names of all accounts in the wallet."""
        self._require_unlocked()
        if not self.path.is_dir():
            return []
        return sorted(p.stem for p in self.path.glob("*.json"))

    def create_account(self, name: str, private_key: Optional[bytes] = None,
                       kdf: Optional[str] = None, iterations: Optional[int] = None) -> PublicKey:
        """
        Create a new account, encrypted under the wallet password.

        Args:
            name: Account name (letters, digits, "_", "-", ".")
            private_key: 32-byte key to import; a fresh key is generated if omitted
            kdf: Keystore KDF ("scrypt" or "pbkdf2"), eth_account default if omitted
            iterations: KDF work factor override

        Returns:
            The account's public key

        Raises:
            ValueError: If the account already exists
        """
        self._require_unlocked()
        keyfile = self._keyfile(name)
        if keyfile.exists():
            raise ValueError(f"Account {name!r} already exists")

        if private_key is None:
            private_key = bytes(Account.create().key)
        keystore = Account.encrypt(private_key, self._password.decode("utf-8"),
                                   kdf=kdf, iterations=iterations)

        self.path.mkdir(parents=True, exist_ok=True)
        keyfile.write_text(json.dumps(keystore))
        self._keys[name] = bytearray(private_key)
        log.info(f"Created account {name}")
        return self.get_public_key(name)

    def _private_key(self, name: str) -> keys.PrivateKey:
        self._require_unlocked()
        if name not in self._keys:
            keyfile = self._keyfile(name)
            if not keyfile.exists():
                raise KeyNotFound(f"No key for account {name!r}", field="account")
            try:
                raw = Account.decrypt(keyfile.read_text(), self._password.decode("utf-8"))
            except ValueError as e:
                raise WalletLocked(f"Cannot unlock account {name!r}: {e}", field="password") from e
            self._keys[name] = bytearray(raw)
        return keys.PrivateKey(bytes(self._keys[name]))

    def get_public_key(self, name: str) -> PublicKey:
        """
        Public key of an account.

        Raises:
            KeyNotFound: If the wallet has no such account
            WalletLocked: If the handle is closed or the password is wrong
        """
        private_key = self._private_key(name)
        return PublicKey(SECP256K1, private_key.public_key.to_compressed_bytes())

    def sign(self, words: List[int], name: str) -> RecoverableSignature:
        """
        Sign a word sequence with an account key.

        The SHA-256 digest of the serialised words is signed with
        recoverable secp256k1 ECDSA.

        Raises:
            KeyNotFound: If the wallet has no such account
            WalletLocked: If the handle is closed or the password is wrong
            SigningFailed: If the words cannot be hashed or signed
        """
        private_key = self._private_key(name)
        try:
            digest = hash_words(words)
            sig = private_key.sign_msg_hash(digest)
        except (ValueError, TypeError) as e:
            raise SigningFailed(f"Cannot sign for {name!r}: {e}", field="words") from e

        signature = RecoverableSignature(
            sig.r.to_bytes(32, "big") + sig.s.to_bytes(32, "big"), sig.v)
        log.debug(f"Signed {len(words)} word(s) for {name}: {mask_secret(signature.to_hex())}")
        return signature

    def lock(self) -> None:
        """Zero the password and cached keys. Idempotent."""
        _zero(self._password)
        for buf in self._keys.values():
            _zero(buf)
        self._keys.clear()
        self._locked = True
