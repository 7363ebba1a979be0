"""
AMM Intent SDK - Configuration

Defaults, overridable from a JSON config file and then from CLI flags.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional, Union

log = logging.getLogger(__name__)

# Placeholder payout per claim until the contract defines its reward formula.
DEFAULT_REWARD_AMOUNT = 10

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Config:
    # Builder / node REST endpoints
    builder_api: str = "http://localhost:3554"
    node_api: str = "http://localhost:3553"
    timeout: int = 30  # seconds

    # Wallet keystore directory
    wallet_dir: str = "~/.amm-sdk/wallet"

    # Contract source, or a precomputed address table
    pint_directory: str = "pint"
    contract_name: str = "amm"
    addresses_file: Optional[str] = None

    reward_amount: int = DEFAULT_REWARD_AMOUNT
    log_level: str = "INFO"

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level {self.log_level!r}, expected one of {list(LOG_LEVELS)}")

    def to_dict(self) -> dict:
        return asdict(self)

    def merged(self, **overrides) -> "Config":
        """Copy with every non-None override applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return Config(**data)


def load_config(path: Union[str, Path, None] = None) -> Config:
    """
    Load configuration from a JSON file.

    Args:
        path: Config file; defaults are used when None or missing

    Raises:
        ValueError: If the file has keys Config does not know
    """
    if path is None:
        return Config()

    config_path = Path(path).expanduser()
    if not config_path.exists():
        log.warning(f"Config file {config_path} not found, using defaults")
        return Config()

    data = json.loads(config_path.read_text())
    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {config_path}: {unknown}")

    log.info(f"Loaded config from {config_path}")
    return Config(**data)
