import hashlib
import pathlib
import sys
from typing import List

import pytest
from eth_keys import keys

# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import amm_sdk`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from amm_sdk.amm_types import SECP256K1, Operation, PredicateAddress, PublicKey  # noqa: E402
from amm_sdk.identity import derive_account_id  # noqa: E402
from amm_sdk.resolver import StaticAddressResolver  # noqa: E402
from amm_sdk.rest_client import SolutionSubmitter  # noqa: E402
from amm_sdk.wallet import Wallet  # noqa: E402

WALLET_PASSWORD = "correct horse battery staple"

# Fast keystore settings for tests; production keeps the eth_account default.
TEST_KDF = {"kdf": "pbkdf2", "iterations": 2}


def private_key_bytes(seed: int) -> bytes:
    """Deterministic valid secp256k1 private key."""
    return hashlib.sha256(f"amm-test-key-{seed}".encode()).digest()


def public_key_for(private_key: bytes) -> PublicKey:
    return PublicKey(SECP256K1, keys.PrivateKey(private_key).public_key.to_compressed_bytes())


def fake_address(operation: Operation) -> PredicateAddress:
    contract = hashlib.sha256(b"amm-contract").digest()
    predicate = hashlib.sha256(operation.value.encode()).digest()
    return PredicateAddress(contract, predicate)


class RecordingSubmitter(SolutionSubmitter):
    """Submitter that keeps every solution it receives."""

    def __init__(self):
        self.solutions: List = []

    def submit_solution(self, solution) -> str:
        self.solutions.append(solution)
        return hashlib.sha256(solution.to_json().encode()).hexdigest().upper()


@pytest.fixture
def alice_key() -> PublicKey:
    return public_key_for(private_key_bytes(1))


@pytest.fixture
def alice(alice_key):
    return derive_account_id(alice_key)


@pytest.fixture
def bob():
    return derive_account_id(public_key_for(private_key_bytes(2)))


@pytest.fixture
def resolver() -> StaticAddressResolver:
    return StaticAddressResolver({op: fake_address(op) for op in Operation})


@pytest.fixture
def submitter() -> RecordingSubmitter:
    return RecordingSubmitter()


@pytest.fixture
def wallet_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Wallet directory holding accounts alice and bob."""
    path = tmp_path / "wallet"
    with Wallet(path).unlock(WALLET_PASSWORD) as handle:
        handle.create_account("alice", private_key_bytes(1), **TEST_KDF)
        handle.create_account("bob", private_key_bytes(2), **TEST_KDF)
    return path


@pytest.fixture
def unlocked(wallet_dir):
    with Wallet(wallet_dir).unlock(WALLET_PASSWORD) as handle:
        yield handle
