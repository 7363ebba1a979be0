"""
AMM Intent SDK - Predicate Address Resolvers

Each operation is solved by one predicate of the AMM contract. A resolver
maps an Operation to its PredicateAddress.

Resolvers:
  - StaticAddressResolver: addresses known up front (dict or JSON file)
  - PintProjectResolver: builds the contract with `pint build` and reads
    the addresses the compiler reports
"""

import json
import logging
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from .amm_types import Operation, PredicateAddress
from .errors import CompilationFailed, PredicateNotFound

log = logging.getLogger(__name__)


class AddressResolver(ABC):
    """Maps operations to predicate addresses."""

    @abstractmethod
    def resolve(self, operation: Operation) -> PredicateAddress:
        """
        Raises:
            PredicateNotFound: If the contract has no predicate for operation
        """

    def contract_address(self) -> bytes:
        """Content address of the contract holding the predicates."""
        return self.resolve(Operation.PROVIDE_LIQUIDITY).contract


class StaticAddressResolver(AddressResolver):
    """
    Resolver over a fixed table.

    JSON file format:
        {
            "ProvideLiquidity": {"contract": "<hex>", "predicate": "<hex>"},
            ...
        }
    """

    def __init__(self, addresses: Dict[Operation, PredicateAddress]):
        self.addresses = dict(addresses)

    def resolve(self, operation: Operation) -> PredicateAddress:
        try:
            return self.addresses[operation]
        except KeyError:
            raise PredicateNotFound("No predicate address configured",
                                    operation.value) from None

    @classmethod
    def from_dict(cls, data: dict) -> "StaticAddressResolver":
        return cls({Operation(name): PredicateAddress.from_dict(entry)
                    for name, entry in data.items()})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticAddressResolver":
        path = Path(path)
        log.info(f"Loading predicate addresses from {path}")
        return cls.from_dict(json.loads(path.read_text()))

    def to_dict(self) -> dict:
        return {op.value: addr.to_dict() for op, addr in self.addresses.items()}


# ═══════════════════════════════════════════════════════════════════════════════
# PINT PROJECT
# ═══════════════════════════════════════════════════════════════════════════════

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")
_CONTRACT_LINE = re.compile(r"^\s*contract\s+(?P<name>\S+)\s+(?P<address>[0-9A-Fa-f]{64})\s*$")
_PREDICATE_LINE = re.compile(r"^\s*[├└│─\s]*(?P<name>\S+::\S+)\s+(?P<address>[0-9A-Fa-f]{64})\s*$")


def addresses_from_build_output(output: str, contract_name: str) -> Dict[str, PredicateAddress]:
    """
    Read predicate addresses from the summary `pint build` prints.

    The compiler reports each contract and its predicates with their content
    addresses:

            contract amm                 5CF8...
                 ├── amm::ProvideLiquidity  A1B2...
                 └── amm::SwapTokens        C3D4...

    Args:
        output: Compiler stdout
        contract_name: Contract whose predicates to return

    Returns:
        Predicate name (last path segment) -> PredicateAddress

    Raises:
        CompilationFailed: If the output does not report contract_name
    """
    addresses: Dict[str, PredicateAddress] = {}
    contract: Optional[bytes] = None
    found = False

    for line in _ANSI_ESCAPE.sub("", output).splitlines():
        match = _CONTRACT_LINE.match(line)
        if match:
            if found:
                break
            if match.group("name") == contract_name:
                contract = bytes.fromhex(match.group("address"))
                found = True
            continue
        match = _PREDICATE_LINE.match(line)
        if match and found:
            name = match.group("name").rsplit("::", 1)[-1]
            addresses[name] = PredicateAddress(contract, bytes.fromhex(match.group("address")))

    if not found:
        raise CompilationFailed(f"pint build did not report an address for contract {contract_name}")
    return addresses


class PintProjectResolver(AddressResolver):
    """
    Resolver that compiles the AMM contract from source.

    Runs `pint build` in the project directory once and takes the contract
    and predicate addresses the compiler reports.
    """

    def __init__(self, pint_directory: Union[str, Path], contract_name: str = "amm",
                 pint_cli: str = "pint", timeout: int = 120):
        self.pint_directory = Path(pint_directory)
        self.contract_name = contract_name
        self.pint_cli = pint_cli
        self.timeout = timeout
        self._addresses: Optional[Dict[str, PredicateAddress]] = None

    def _build(self) -> str:
        if not self.pint_directory.is_dir():
            raise CompilationFailed(
                f"No pint project at {self.pint_directory}; configure an addresses file instead")
        cmd = [self.pint_cli, "build"]
        log.info(f"Compiling contract in {self.pint_directory}")
        try:
            result = subprocess.run(cmd, cwd=self.pint_directory, capture_output=True,
                                    text=True, timeout=self.timeout)
        except FileNotFoundError:
            raise CompilationFailed(f"Compiler not found: {self.pint_cli}") from None
        except subprocess.TimeoutExpired:
            raise CompilationFailed(f"Compiler timeout after {self.timeout}s") from None
        if result.returncode != 0:
            raise CompilationFailed(f"pint build failed: {result.stderr.strip()}")
        # The build summary may be written to either stream.
        return result.stdout + "\n" + result.stderr

    def addresses(self) -> Dict[str, PredicateAddress]:
        if self._addresses is None:
            self._addresses = addresses_from_build_output(self._build(), self.contract_name)
            log.info(f"Resolved {len(self._addresses)} predicate(s) for {self.contract_name}")
        return self._addresses

    def resolve(self, operation: Operation) -> PredicateAddress:
        addresses = self.addresses()
        try:
            return addresses[operation.value]
        except KeyError:
            raise PredicateNotFound(
                f"Contract {self.contract_name} has no predicate {operation.value}",
                operation.value) from None
