"""
AMM Intent SDK - REST Clients

HTTP clients for the builder (solution submission) and the node
(state queries).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import requests

from .amm_types import AccountId
from .errors import SubmissionFailed
from .solution import Solution
from .storage import StorageKey, balance, lp_balance_key, nonce, nonce_key
from .words import words_to_hex

log = logging.getLogger(__name__)


class SolutionSubmitter(ABC):
    """Anything that accepts a solution and returns its content address."""

    @abstractmethod
    def submit_solution(self, solution: Solution) -> str:
        """
        Raises:
            SubmissionFailed: If the solution could not be delivered
        """


class _RestClient:
    """Shared request handling for the builder and node APIs."""

    def __init__(self, url: str, timeout: int = 30):
        self.url = url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        url = f"{self.url}/{path.lstrip('/')}"
        try:
            response = requests.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SubmissionFailed(-1, f"Connection failed: {e}") from e

        if not response.ok:
            raise SubmissionFailed(response.status_code, response.text.strip() or response.reason)

        if not response.content:
            return None
        return response.json()


class BuilderClient(_RestClient, SolutionSubmitter):
    """
    Client for the block builder.

    Usage:
        builder = BuilderClient("http://localhost:3554")
        content_address = builder.submit_solution(solution)
    """

    def submit_solution(self, solution: Solution) -> str:
        """Submit a solution, returning its content address (hex)."""
        result = self._request("POST", "/submit-solution", solution.to_dict())
        log.info(f"Builder accepted solution {result}")
        return str(result)


class NodeClient(_RestClient):
    """
    Client for the node's state API.

    Usage:
        node = NodeClient("http://localhost:3553")
        raw = node.query_state(contract_address, key)
    """

    def query_state(self, contract: bytes, key: StorageKey) -> Optional[List[int]]:
        """
        Read a storage value.

        Args:
            contract: 32-byte contract content address
            key: Storage key words

        Returns:
            The stored words, or None if nothing is stored
        """
        path = f"/query-state/{contract.hex().upper()}/{words_to_hex(key)}"
        return self._request("GET", path)

    def query_lp_balance(self, contract: bytes, account: AccountId) -> int:
        return balance(self.query_state(contract, lp_balance_key(account)))

    def query_nonce(self, contract: bytes, account: AccountId) -> int:
        return nonce(self.query_state(contract, nonce_key(account)))
