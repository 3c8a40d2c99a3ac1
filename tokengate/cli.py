#!/usr/bin/env python3
"""Admin bootstrap utility for tokengate.

Issues (or replaces) the short-lived admin token against the configured
store and prints it, without starting the HTTP server.

Usage:
    tokengate-bootstrap
    tokengate-bootstrap --validity "30 minutes" --scope General.Access,Tokens.Generate
"""

import argparse
import asyncio
import sys

from tokengate.core import get_settings, setup_logging
from tokengate.errors import GatewayError
from tokengate.services.gateway import build_gateway
from tokengate.store.sql import SQLTokenStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue the tokengate admin bootstrap token")
    parser.add_argument(
        "--validity",
        default=None,
        help="Token lifetime, e.g. '10 minutes' (default: BOOTSTRAP_TOKEN_VALIDITY)",
    )
    parser.add_argument(
        "--scope",
        default=None,
        help="Comma-separated permissions (default: BOOTSTRAP_ADMIN_SCOPE)",
    )
    return parser


async def _bootstrap(args: argparse.Namespace) -> int:
    settings = get_settings()
    gateway = build_gateway(settings)
    if args.validity:
        gateway.lifecycle.bootstrap_validity = args.validity
    if args.scope:
        gateway.lifecycle.admin_scope = [s.strip() for s in args.scope.split(",") if s.strip()]

    try:
        if isinstance(gateway.store, SQLTokenStore):
            await gateway.store.create_tables()
        record = await gateway.lifecycle.bootstrap_admin()
        await gateway.audit.flush()
    finally:
        await gateway.store.close()

    print("Admin token issued:")
    print(f"  scope: {', '.join(record.scope)}")
    print(f"  expires: {record.expires_at.isoformat() if record.expires_at else 'never'}")
    print("  token:")
    print(f"    {record.token_string}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(level="WARNING")
    try:
        return asyncio.run(_bootstrap(args))
    except GatewayError as e:
        print(f"ERROR: {e.kind.value}: {e.detail}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
