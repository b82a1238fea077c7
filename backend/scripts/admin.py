#!/usr/bin/env python3
"""Operator commands: schema bootstrap, IP block list and vote recount.

Usage:
    python backend/scripts/admin.py init-db [--drop]
    python backend/scripts/admin.py block 203.0.113.7 --reason spam
    python backend/scripts/admin.py unblock 203.0.113.7
    python backend/scripts/admin.py list-blocked
    python backend/scripts/admin.py recount
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Sequence

from appshare.container import build_services
from appshare.db import async_session_factory, engine, init_models
from appshare.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="create all tables")
    init_db.add_argument("--drop", action="store_true", help="drop existing tables first")

    block = sub.add_parser("block", help="add an IP to the block list")
    block.add_argument("ip")
    block.add_argument("--reason", default=None)

    unblock = sub.add_parser("unblock", help="remove an IP from the block list")
    unblock.add_argument("ip")

    sub.add_parser("list-blocked", help="print the block list as JSON")
    sub.add_parser("recount", help="rebuild gallery vote counts from the ledger")
    return parser


async def run(args: argparse.Namespace) -> int:
    if args.command == "init-db":
        await init_models(drop=args.drop)
        print("tables created")
        return 0

    services = build_services(async_session_factory)
    if args.command == "block":
        created = await services.guard.block(args.ip, args.reason)
        print("blocked" if created else "already blocked")
    elif args.command == "unblock":
        removed = await services.guard.unblock(args.ip)
        print("unblocked" if removed else "not blocked")
        return 0 if removed else 1
    elif args.command == "list-blocked":
        rows = await services.guard.list_blocked()
        print(
            json.dumps(
                [{"ip": r.ip_address, "reason": r.reason, "blocked_at": r.blocked_at} for r in rows],
                ensure_ascii=False,
                default=str,
                indent=2,
            )
        )
    elif args.command == "recount":
        changed = await services.ledger.recount_all()
        print(f"{changed} gallery entries updated")
    return 0


async def _main(argv: Sequence[str] | None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return await run(args)
    finally:
        await engine.dispose()


def main(argv: Sequence[str] | None = None) -> int:
    setup_logging()
    return asyncio.run(_main(argv))


if __name__ == "__main__":
    sys.exit(main())
