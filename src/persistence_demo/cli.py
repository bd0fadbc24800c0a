"""Command line entry point.

Usage:
    # Migrate to head and validate (default configuration):
    python -m persistence_demo provision

    # Generate the schema from the model instead of migrating:
    python -m persistence_demo provision --no-migrations --generation create

    # Check the ledger and drift, list applied revisions, seed sample data:
    python -m persistence_demo check
    python -m persistence_demo ledger
    python -m persistence_demo seed

    # Write a new revision from the difference between model and database:
    python -m persistence_demo revision -m "add nickname"
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

from alembic import command
from alembic.script import ScriptDirectory
from pydantic import ValidationError
from sqlalchemy.engine import Connection

from persistence_demo.app import Application
from persistence_demo.config import GenerationMode, ProvisioningSettings, Settings
from persistence_demo.database import create_engine, translate_store_errors
from persistence_demo.errors import PersistenceError
from persistence_demo.ledger import ChangeEntry, ChangeLedger
from persistence_demo.provisioning import alembic_config
from persistence_demo.seeding.seed import seed_all

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="persistence-demo",
        description="Provision and inspect the persistence-demo database",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("provision", "Provision the schema with the configured strategy"),
        ("seed", "Provision, then upsert the sample records"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--no-migrations",
            dest="migrations_enabled",
            action="store_false",
            default=None,
            help="Disable Alembic migrations for this run",
        )
        sub.add_argument(
            "--generation",
            choices=[mode.value for mode in GenerationMode],
            default=None,
            help="Schema generation mode (none|create|validate)",
        )

    subparsers.add_parser("check", help="Validate the live schema against the model")
    subparsers.add_parser("ledger", help="List revisions recorded in the change ledger")

    revision = subparsers.add_parser(
        "revision", help="Autogenerate a migration from the model/database difference"
    )
    revision.add_argument("-m", "--message", required=True, help="Revision message")

    return parser.parse_args(argv)


def _with_provisioning(settings: Settings, args: argparse.Namespace) -> Settings:
    migrations_enabled = getattr(args, "migrations_enabled", None)
    generation = getattr(args, "generation", None)
    current = settings.provisioning
    provisioning = ProvisioningSettings(
        migrations_enabled=current.migrations_enabled if migrations_enabled is None else migrations_enabled,
        generation=current.generation if generation is None else GenerationMode(generation),
    )
    return settings.model_copy(update={"provisioning": provisioning})


async def _provision(settings: Settings, seed: bool) -> None:
    async with Application(settings) as app:
        print(f"Provisioned: {app.report}")
        if seed:
            results = await seed_all(app.repository)
            print(f"Seeding complete: {results}")


async def _read_ledger(settings: Settings) -> list[ChangeEntry]:
    def read(connection: Connection) -> list[ChangeEntry]:
        ledger = ChangeLedger(connection)
        return ledger.entries() if ledger.exists() else []

    engine = create_engine(settings.database)
    try:
        with translate_store_errors():
            async with engine.connect() as connection:
                return await connection.run_sync(read)
    finally:
        await engine.dispose()


async def _verify_ledger(settings: Settings) -> None:
    def verify(connection: Connection) -> None:
        ledger = ChangeLedger(connection)
        if ledger.exists():
            ledger.verify(ScriptDirectory.from_config(alembic_config(connection)))

    engine = create_engine(settings.database)
    try:
        with translate_store_errors():
            async with engine.connect() as connection:
                await connection.run_sync(verify)
    finally:
        await engine.dispose()


async def _autogenerate(settings: Settings, message: str) -> None:
    def generate(connection: Connection) -> None:
        command.revision(alembic_config(connection), message=message, autogenerate=True)

    engine = create_engine(settings.database)
    try:
        with translate_store_errors():
            async with engine.begin() as connection:
                await connection.run_sync(generate)
    finally:
        await engine.dispose()


async def _run(args: argparse.Namespace, settings: Settings) -> None:
    if args.command in ("provision", "seed"):
        await _provision(_with_provisioning(settings, args), seed=args.command == "seed")
    elif args.command == "check":
        await _verify_ledger(settings)
        check = ProvisioningSettings(migrations_enabled=False, generation=GenerationMode.VALIDATE)
        await _provision(settings.model_copy(update={"provisioning": check}), seed=False)
    elif args.command == "ledger":
        entries = await _read_ledger(settings)
        if not entries:
            print("No revisions recorded")
        for entry in entries:
            print(
                f"{entry.order_executed:>3}  {entry.revision:<32} {entry.checksum}  "
                f"{entry.applied_at:%Y-%m-%d %H:%M:%S}"
            )
    elif args.command == "revision":
        await _autogenerate(settings, args.message)


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the command and return the process exit code."""
    args = _parse_args(argv)
    try:
        settings = Settings()
    except ValidationError as exc:
        print(f"Invalid configuration:\n{exc}")
        return 2
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        asyncio.run(_run(args, settings))
    except ValidationError as exc:
        logger.error("Invalid provisioning options: %s", exc)
        return 2
    except PersistenceError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0
