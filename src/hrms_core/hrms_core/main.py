from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Optional, Sequence

from dotenv import load_dotenv

from config import get_settings_module

from .container import Container, build_container
from .core.enums import LeaveStatus, Role
from .core.exceptions import DomainError
from .core.policy import Caller
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]
SCHEMA_PATH = REPO_ROOT / "database" / "schema.sql"
SEED_PATH = REPO_ROOT / "database" / "seed.sql"


def load_settings() -> ModuleType:
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def init_db(settings: ModuleType, *, seed: bool = False) -> list[str]:
    db_config = dict(settings.DB_CONFIG)
    apply_schema(db_config, schema_path=SCHEMA_PATH)
    if seed:
        apply_seed_sql(db_config, seed_path=SEED_PATH)
    tables = list_tables(db_config)
    logger.info(
        f"Schema ready at {db_config.get('user')}@{db_config.get('host')}:"
        f"{db_config.get('port', 3306)}/{db_config.get('database')} (tables={len(tables)})"
    )
    return tables


def create_container(settings: Optional[ModuleType] = None) -> Container:
    settings = settings or load_settings()
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        init_db(settings, seed=bool(getattr(settings, "AUTO_SEED_DB", False)))
    return build_container(db_config=settings.DB_CONFIG, settings=settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hrms-core", description="Attendance, leave and payroll operations")
    parser.add_argument("--as-user", type=int, default=0, help="acting user id")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.ADMIN.value)

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="apply schema.sql")
    p.add_argument("--seed", action="store_true", help="also load seed.sql")

    p = sub.add_parser("check-in")
    p.add_argument("--at", help="ISO timestamp, defaults to now")

    p = sub.add_parser("check-out")
    p.add_argument("--at", help="ISO timestamp, defaults to now")

    p = sub.add_parser("summary", help="monthly attendance summary")
    p.add_argument("--user-id", type=int)
    p.add_argument("--month", required=True, help="month number 1-12")
    p.add_argument("--year", type=int, required=True)

    p = sub.add_parser("calculate-salary")
    p.add_argument("--user-id", type=int, required=True)
    p.add_argument("--month", required=True, help="YYYY-MM")
    p.add_argument("--year", type=int, required=True)

    p = sub.add_parser("bulk-payroll")
    p.add_argument("--month", required=True, help="YYYY-MM")
    p.add_argument("--year", type=int, required=True)

    p = sub.add_parser("leave-request", help="submit a leave request for the acting user")
    p.add_argument("--from", dest="from_date", required=True, help="YYYY-MM-DD")
    p.add_argument("--to", dest="to_date", required=True, help="YYYY-MM-DD")
    p.add_argument("--reason", required=True)

    p = sub.add_parser("leave-decide", help="approve or reject a pending leave request")
    p.add_argument("--leave-id", type=int, required=True)
    p.add_argument("--status", choices=[LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value], required=True)
    p.add_argument("--reason", help="rejection reason")

    p = sub.add_parser("leave-cancel", help="cancel a pending leave request")
    p.add_argument("--leave-id", type=int, required=True)

    p = sub.add_parser("leave-balance")
    p.add_argument("--user-id", type=int)

    return parser


def run(args: argparse.Namespace, container: Container) -> object:
    caller = Caller(user_id=args.as_user, role=Role(args.role))

    if args.command == "check-in":
        return container.attendance_controller.check_in(caller, check_in=args.at)
    if args.command == "check-out":
        return container.attendance_controller.check_out(caller, check_out=args.at)
    if args.command == "summary":
        return container.attendance_controller.summary(caller, month=args.month, year=args.year, user_id=args.user_id)
    if args.command == "calculate-salary":
        return container.payroll_controller.calculate(caller, args.user_id, month=args.month, year=args.year)
    if args.command == "bulk-payroll":
        return container.payroll_controller.calculate_bulk(caller, month=args.month, year=args.year)
    if args.command == "leave-request":
        return container.leave_controller.create(
            caller, from_date=args.from_date, to_date=args.to_date, reason=args.reason
        )
    if args.command == "leave-decide":
        return container.leave_controller.approve(
            caller, args.leave_id, status=args.status, rejection_reason=args.reason
        )
    if args.command == "leave-cancel":
        return container.leave_controller.remove(caller, args.leave_id)
    if args.command == "leave-balance":
        return container.leave_controller.balance(caller, user_id=args.user_id)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if args.command == "init-db":
        tables = init_db(settings, seed=args.seed)
        print(json.dumps({"tables": tables}))
        return 0

    container = create_container(settings)
    try:
        result = run(args, container)
    except DomainError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
