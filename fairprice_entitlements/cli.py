"""
FairPrice Entitlements CLI

Command-line interface for inspecting and issuing entitlement tokens.
"""

from __future__ import annotations

import argparse
import json
import logging
import secrets
import sys

from . import __version__, entitlements
from .config import load_config
from .errors import ConfigError, RedeemError
from .redeem import apply_purchase
from .store import EntitlementStore
from .types import PaymentConfirmation, PurchaseKind


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def cmd_inspect(args: argparse.Namespace, store: EntitlementStore) -> int:
    """Print the verified, pruned record held by a token."""
    now = entitlements.now_seconds()
    record = store.load(args.token, now)

    print(json.dumps(
        {
            "record": record.to_wire(),
            "has_pass": entitlements.has_pass(record, now),
            "cookie_ttl": entitlements.compute_cookie_ttl(record, now, store.config.min_cookie_ttl),
        },
        indent=2,
        sort_keys=True,
    ))
    return 0


def cmd_grant(args: argparse.Namespace, store: EntitlementStore) -> int:
    """Apply a grant to a token (or a fresh record) and print the new cookie."""
    now = entitlements.now_seconds()
    record = store.load(args.token, now)

    confirmation = PaymentConfirmation(
        kind=args.kind,
        paid=True,
        item_id=args.item or "",
        fingerprint=args.fingerprint or "",
    )
    try:
        record, message = apply_purchase(record, confirmation, store.config, now)
    except RedeemError as e:
        logging.error(str(e))
        return 2

    cookie = store.save(record, now)
    logging.info(message)
    print(cookie.value)
    print(f"Set-Cookie: {cookie.header_value()}")
    return 0


def cmd_generate_secret(args: argparse.Namespace) -> int:
    """Print a new random signing secret."""
    print(secrets.token_urlsafe(args.bytes))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fairprice-entitlements",
        description="FairPrice Entitlements - signed, device-bound entitlement cookies",
    )

    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
        default=None,
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"fairprice-entitlements {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    inspect_parser = sub.add_parser("inspect", help="Verify a token and print its record")
    inspect_parser.add_argument("token", help="Cookie token value")

    grant_parser = sub.add_parser("grant", help="Grant a pass or a report unlock")
    grant_parser.add_argument("kind", choices=[k.value for k in PurchaseKind])
    grant_parser.add_argument("--item", help="Item id (required for report)")
    grant_parser.add_argument("--fingerprint", help="Content fingerprint for report")
    grant_parser.add_argument("--token", help="Existing token to extend", default=None)

    secret_parser = sub.add_parser("generate-secret", help="Print a new signing secret")
    secret_parser.add_argument("--bytes", type=int, default=32, help="Entropy in bytes")

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command == "generate-secret":
        return cmd_generate_secret(args)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        logging.error(str(e))
        return 1

    store = EntitlementStore(config)

    if args.command == "inspect":
        return cmd_inspect(args, store)
    return cmd_grant(args, store)


if __name__ == "__main__":
    sys.exit(main())
