"""Wage ledger command line interface.

Provides operational tools for:
- Schema creation
- Ledger reconciliation (exit code 1 on drift)
- Balance queries

Usage:
    wage-ledger init-db
    wage-ledger reconcile [--worker-id X]
    wage-ledger balance --worker-id X
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Generator
from contextlib import contextmanager
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from wage_ledger.config import configure_logging
from wage_ledger.database import create_schema, get_engine
from wage_ledger.errors import WageLedgerError
from wage_ledger.services.ledger_service import LedgerService, ReconciliationResult


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class WageLedgerCli:
    """Wage ledger command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="wage-ledger",
            description="Wage ledger operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: DATABASE_URL from the environment)",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Log level (default: LOG_LEVEL from the environment)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create any missing tables",
        )

        # reconcile command
        reconcile = subparsers.add_parser(
            "reconcile",
            help="Fold ledger history and compare with cached balances",
        )
        reconcile.add_argument(
            "--worker-id",
            type=parse_uuid,
            help="Reconcile a single worker (default: all workers)",
        )
        reconcile.add_argument(
            "--json",
            action="store_true",
            help="Print results as JSON lines",
        )

        # balance command
        balance = subparsers.add_parser(
            "balance",
            help="Show a worker's advance balance",
        )
        balance.add_argument(
            "--worker-id",
            type=parse_uuid,
            required=True,
            help="Worker ID",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "init-db": self._cmd_init_db,
            "reconcile": self._cmd_reconcile,
            "balance": self._cmd_balance,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except WageLedgerError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 2

    @contextmanager
    def _session(self, database_url: str | None) -> Generator[Session, None, None]:
        engine = get_engine(database_url)
        try:
            with sessionmaker(engine, expire_on_commit=False)() as session:
                yield session
        finally:
            engine.dispose()

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""
        engine = get_engine(args.database_url)
        try:
            create_schema(engine)
        finally:
            engine.dispose()
        print("Schema is up to date")
        return 0

    def _cmd_reconcile(self, args: argparse.Namespace) -> int:
        """Reconcile one or all workers; read-only."""
        with self._session(args.database_url) as session:
            ledger = LedgerService(session)
            if args.worker_id:
                results = [ledger.reconcile(args.worker_id)]
            else:
                results = ledger.reconcile_all()

        drifted = [r for r in results if not r.is_consistent]
        for result in results:
            if args.json:
                print(json.dumps(self._result_dict(result)))
            else:
                mark = "OK   " if result.is_consistent else "DRIFT"
                print(
                    f"{mark} {result.worker_id}  cached={result.cached_balance:>12,.2f}  "
                    f"folded={result.folded_balance:>12,.2f}  "
                    f"transactions={result.transaction_count}"
                )

        if not args.json:
            print(f"\n{len(results)} workers checked, {len(drifted)} with drift")
        return 1 if drifted else 0

    def _cmd_balance(self, args: argparse.Namespace) -> int:
        """Query a worker's advance balance."""
        with self._session(args.database_url) as session:
            ledger = LedgerService(session)
            balance = ledger.get_balance(args.worker_id)
            history = ledger.get_history(args.worker_id)

        print(f"Advance balance for worker: {args.worker_id}")
        print(f"\n  Balance:       {balance:>15,.2f}")
        print(f"  Transactions:  {len(history):>15}")
        if history:
            last = history[-1]
            print(f"  Last posting:  {last.kind} {last.amount:,.2f} on {last.entry_date}")
        return 0

    @staticmethod
    def _result_dict(result: ReconciliationResult) -> dict[str, object]:
        return {
            "worker_id": str(result.worker_id),
            "cached_balance": str(result.cached_balance),
            "folded_balance": str(result.folded_balance),
            "last_balance_after": str(result.last_balance_after),
            "transaction_count": result.transaction_count,
            "chain_breaks": result.chain_breaks,
            "consistent": result.is_consistent,
        }


def main() -> int:
    """CLI entry point."""
    cli = WageLedgerCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
