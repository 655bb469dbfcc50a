"""Command-line entry point: ``budget-cycle``."""

import argparse
import sys
from collections.abc import Sequence
from datetime import date
from decimal import Decimal, InvalidOperation
from uuid import UUID

from budget_config import get_active_config
from budget_kernel.db.engine import create_tables, init_engine_from_url
from budget_kernel.domain.dtos import ChargeApplicationResult, SnapshotInfo
from budget_kernel.exceptions import BudgetKernelError
from budget_kernel.logging_config import configure_logging, get_logger
from budget_services.cycle_orchestrator import CycleOrchestrator

logger = get_logger("cli")


def fmt_amount(value: Decimal, currency: str) -> str:
    return f"{value:,.2f} {currency}"


def _uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid UUID: {value!r}") from None


def _date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (YYYY-MM-DD): {value!r}") from None


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="budget-cycle",
        description="Apply recurring charges and freeze budget cycles.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  budget-cycle init-db\n"
            "  budget-cycle cycle --user-id 550e8400-... --date 2025-01-28\n"
            "  budget-cycle check-due --user-id 550e8400-...\n"
            "  budget-cycle freeze --user-id 550e8400-... --label 2025-01\n"
        ),
    )
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument(
        "--database-url", type=str, default=None,
        help="Database URL (overrides the configuration)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables")

    p = sub.add_parser("cycle", help="Show the budget cycle containing a date")
    p.add_argument("--user-id", type=_uuid, required=True)
    p.add_argument("--date", type=_date, default=None, help="Reference date (default: today)")

    p = sub.add_parser("check-due", help="Apply the current cycle's charges already due")
    p.add_argument("--user-id", type=_uuid, required=True)

    p = sub.add_parser(
        "validate-salary",
        help="Record the salary, freeze the previous cycle, apply this cycle's charges",
    )
    p.add_argument("--user-id", type=_uuid, required=True)
    p.add_argument("--label", type=str, default=None, help="Cycle label YYYY-MM")
    p.add_argument("--amount", type=_decimal, default=None)
    p.add_argument("--received-on", type=_date, default=None)

    p = sub.add_parser("freeze", help="Freeze (or re-freeze) a cycle snapshot")
    p.add_argument("--user-id", type=_uuid, required=True)
    p.add_argument("--label", type=str, required=True, help="Cycle label YYYY-MM")

    p = sub.add_parser("snapshots", help="List a user's frozen snapshots")
    p.add_argument("--user-id", type=_uuid, required=True)

    return parser


def print_charges(result: ChargeApplicationResult, currency: str) -> None:
    print(f"  Cycle {result.cycle}")
    for outcome in result.outcomes:
        line = f"    {outcome.charge_name:<30} {outcome.status.value:<16}"
        if outcome.entry is not None:
            line += f" {fmt_amount(outcome.entry.amount, currency)} on {outcome.entry.entry_date}"
        elif outcome.due_date is not None:
            line += f" due {outcome.due_date}"
        if outcome.error_code:
            line += f" [{outcome.error_code}] {outcome.error_message}"
        print(line)
    print(f"  {len(result.created_entries)} entr(y/ies) created, {len(result.failures)} failed")


def print_snapshot(snapshot: SnapshotInfo, currency: str) -> None:
    print(f"  {snapshot.cycle_label}  [{snapshot.cycle_start} .. {snapshot.cycle_end}]")
    print(f"    revenue            {fmt_amount(snapshot.total_revenue, currency)}")
    print(f"    fixed charges      {fmt_amount(snapshot.total_fixed_charges, currency)}"
          f"  (budget {fmt_amount(snapshot.budget_fixed_charges, currency)},"
          f" {snapshot.fixed_charge_count} entries)")
    print(f"    variable expenses  {fmt_amount(snapshot.total_variable_expenses, currency)}"
          f"  (budget {fmt_amount(snapshot.budget_variable_expenses, currency)},"
          f" {snapshot.variable_expense_count} entries)")
    print(f"    savings            {fmt_amount(snapshot.total_savings, currency)}")
    print(f"    current account    {fmt_amount(snapshot.current_account_balance, currency)}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ValueError, KeyError) as exc:
        print(f"  ERROR: Invalid configuration: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=config.logging.level)

    try:
        init_engine_from_url(
            args.database_url or config.database.url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
            max_overflow=config.database.max_overflow,
        )
    except Exception as exc:
        print(f"  ERROR: Cannot connect to database: {exc}", file=sys.stderr)
        return 1

    orchestrator = CycleOrchestrator.from_config(config)
    currency = config.currency

    try:
        if args.command == "init-db":
            create_tables()
            print("  Tables created.")
        elif args.command == "cycle":
            cycle = orchestrator.compute_cycle(args.user_id, args.date)
            print(f"  {cycle}")
        elif args.command == "check-due":
            print_charges(orchestrator.check_due_charges(args.user_id), currency)
        elif args.command == "validate-salary":
            result = orchestrator.validate_salary(
                args.user_id,
                cycle_label=args.label,
                amount=args.amount,
                received_on=args.received_on,
            )
            entry = result.validation.entry
            print(f"  Recorded {fmt_amount(entry.amount, currency)} on {entry.entry_date}")
            if result.previous_snapshot is not None:
                print("  Previous cycle frozen:")
                print_snapshot(result.previous_snapshot, currency)
            if result.charges is not None:
                print_charges(result.charges, currency)
        elif args.command == "freeze":
            print_snapshot(orchestrator.freeze_cycle(args.user_id, args.label), currency)
        elif args.command == "snapshots":
            snapshots = orchestrator.list_snapshots(args.user_id)
            if not snapshots:
                print("  No snapshots.")
            for snapshot in snapshots:
                print_snapshot(snapshot, currency)
    except BudgetKernelError as exc:
        logger.warning("cli_command_failed", extra={"command": args.command}, exc_info=True)
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
