#!/usr/bin/env python3
"""
AMM Intent CLI

Signs AMM intents with a local wallet and submits them to a builder.

Usage:
    # Create an account
    amm-sdk new-account alice

    # Provide 10 A + 10 B
    amm-sdk provide-liquidity alice 10 10

    # Swap 100 of token A (1) for token B, print the solution without sending it
    amm-sdk --dry-run swap-tokens alice 1 100

    # Show an account's LP balance and nonce
    amm-sdk balance alice

Configuration:
    --config points at a JSON file with any of the Config fields
    (builder_api, node_api, wallet_dir, pint_directory, addresses_file, ...).
    Flags override the file.
"""

import argparse
import getpass
import logging
import sys
from typing import Dict, List, Optional

from .amm_types import INTENT_TYPES, Operation
from .config import LOG_LEVELS, Config, load_config
from .errors import AmmError
from .identity import derive_account_id
from .mutations import compute_mutations
from .pipeline import IntentPipeline
from .resolver import AddressResolver, PintProjectResolver, StaticAddressResolver
from .rest_client import BuilderClient, NodeClient
from .storage import StorageKey, decode_word
from .wallet import Wallet

log = logging.getLogger("amm-sdk")

# subcommand -> (operation, progress message)
INTENT_COMMANDS = {
    "provide-liquidity": (Operation.PROVIDE_LIQUIDITY, "Providing liquidity"),
    "remove-liquidity": (Operation.REMOVE_LIQUIDITY, "Removing liquidity"),
    "swap-tokens": (Operation.SWAP_TOKENS, "Swapping tokens"),
    "stake-liquidity": (Operation.STAKE_LIQUIDITY, "Staking liquidity"),
    "claim-rewards": (Operation.CLAIM_REWARDS, "Claiming rewards"),
}

FIELD_HELP = {
    "amount_a": "Amount of token A to deposit",
    "amount_b": "Amount of token B to deposit",
    "lp_tokens": "Amount of LP tokens to remove",
    "from_token": "Token to swap from (1 = token A, 2 = token B)",
    "amount_in": "Amount of tokens to swap in",
    "amount": "Amount of LP tokens to stake",
    "current_time": "Current timestamp",
}


def prompt_password(confirm: bool = False) -> str:
    password = getpass.getpass("Enter password to unlock wallet: ")
    if confirm and getpass.getpass("Repeat password: ") != password:
        raise ValueError("Passwords do not match")
    return password


def make_resolver(config: Config) -> AddressResolver:
    if config.addresses_file:
        return StaticAddressResolver.from_file(config.addresses_file)
    return PintProjectResolver(config.pint_directory, config.contract_name)


def fetch_prior_state(node: NodeClient, contract: bytes,
                      keys: List[StorageKey]) -> Dict[StorageKey, int]:
    """Current stored word for each key (0 when absent)."""
    return {key: decode_word(node.query_state(contract, key)) for key in keys}


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

def cmd_intent(args: argparse.Namespace, config: Config) -> int:
    operation, message = INTENT_COMMANDS[args.command]
    fields = {name: getattr(args, name) for name in INTENT_TYPES[operation].FIELDS}
    summary = ", ".join(f"{k}={v}" for k, v in fields.items())
    print(f"{message}: user={args.user}, {summary}")

    resolver = make_resolver(config)
    submitter = None if args.dry_run else BuilderClient(config.builder_api, config.timeout)
    wallet = Wallet(config.wallet_dir)

    with wallet.unlock(prompt_password()) as keys:
        pipeline = IntentPipeline(keys, resolver, submitter, config.reward_amount)
        intent = pipeline.intent_for(operation, args.user, **fields)

        prior = None
        if args.resolve_state:
            node = NodeClient(config.node_api, config.timeout)
            wanted = compute_mutations(intent, config.reward_amount).keys()
            prior = fetch_prior_state(node, resolver.contract_address(), wanted)

        built = pipeline.build_intent(intent, args.user, prior_state=prior)

    if args.dry_run:
        print(built.solution.to_json(indent=2))
        return 0

    content_address = pipeline.submit_built(built)
    print(f"Sent {operation.value} solution: {content_address}")
    return 0


def cmd_new_account(args: argparse.Namespace, config: Config) -> int:
    wallet = Wallet(config.wallet_dir)
    with wallet.unlock(prompt_password(confirm=True)) as keys:
        public_key = keys.create_account(args.name)
    print(f"Created account {args.name}")
    print(f"  public key: {public_key.to_hex()}")
    print(f"  account id: {derive_account_id(public_key)}")
    return 0


def cmd_balance(args: argparse.Namespace, config: Config) -> int:
    wallet = Wallet(config.wallet_dir)
    with wallet.unlock(prompt_password()) as keys:
        account = derive_account_id(keys.get_public_key(args.user))

    contract = make_resolver(config).contract_address()
    node = NodeClient(config.node_api, config.timeout)
    print(f"Account {args.user} ({account})")
    print(f"  lp balance: {node.query_lp_balance(contract, account)}")
    print(f"  nonce:      {node.query_nonce(contract, account)}")
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="amm-sdk", description="AMM intent client")
    parser.add_argument("-w", "--wallet", dest="wallet_dir", help="Wallet directory")
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--builder-api", help="Builder REST endpoint")
    parser.add_argument("--node-api", help="Node REST endpoint")
    parser.add_argument("--pint-directory", help="Directory of the pint AMM contract")
    parser.add_argument("--addresses", dest="addresses_file",
                        help="JSON file of predicate addresses (skips compilation)")
    parser.add_argument("--reward-amount", type=int, help="Reward paid by claim-rewards")
    parser.add_argument("--log-level", choices=LOG_LEVELS)
    parser.add_argument("--dry-run", action="store_true",
                        help="Print the solution instead of submitting it")
    parser.add_argument("--resolve-state", action="store_true",
                        help="Query the node and send absolute values instead of deltas")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, (operation, message) in INTENT_COMMANDS.items():
        sub = subparsers.add_parser(name, help=message)
        sub.add_argument("user", help="Wallet account performing the operation")
        for field in INTENT_TYPES[operation].FIELDS:
            sub.add_argument(field, type=int, help=FIELD_HELP[field])
        sub.set_defaults(func=cmd_intent)

    new_account = subparsers.add_parser("new-account", help="Create a wallet account")
    new_account.add_argument("name", help="Account name")
    new_account.set_defaults(func=cmd_new_account)

    bal = subparsers.add_parser("balance", help="Show LP balance and nonce")
    bal.add_argument("user", help="Wallet account")
    bal.set_defaults(func=cmd_balance)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config).merged(
            wallet_dir=args.wallet_dir,
            builder_api=args.builder_api,
            node_api=args.node_api,
            pint_directory=args.pint_directory,
            addresses_file=args.addresses_file,
            reward_amount=args.reward_amount,
            log_level=args.log_level,
        )
    except ValueError as e:
        print(f"Command failed because: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    try:
        return args.func(args, config)
    except (AmmError, ValueError) as e:
        log.debug("Command failed", exc_info=True)
        print(f"Command failed because: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
