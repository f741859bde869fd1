"""StaffDesk admin CLI — schema setup, staff provisioning, server.

Usage:
    staffdesk init-db                                   # Create missing tables
    staffdesk create-staff alice alice@corp.example -d Finance
    staffdesk serve --reload                            # Run the API with uvicorn

Accounts are never created through the HTTP API; this is the out-of-band
path for provisioning them.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import sys
from typing import Optional

import click
from sqlalchemy.exc import IntegrityError

from staffdesk import __version__
from staffdesk.auth.password import hash_password
from staffdesk.config import settings
from staffdesk.db.engine import Database
from staffdesk.db.models import OFFICE_STAFF_ROLE, Account, StaffProfile


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. Click CliRunner inside an async test)
    by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _init_db(database: Database) -> None:
    try:
        await database.create_all()
    finally:
        await database.dispose()


async def _create_staff(
    database: Database,
    *,
    username: str,
    email: str,
    password: str,
    department: str,
    full_name: Optional[str],
    age: Optional[int],
    sex: Optional[str],
    contact_no: Optional[str],
) -> tuple[int, int]:
    """Insert an account and its staff profile in one transaction."""
    try:
        async with database.session_factory() as session:
            async with session.begin():
                account = Account(
                    username=username,
                    email=email,
                    password=hash_password(password),
                    role=OFFICE_STAFF_ROLE,
                )
                session.add(account)
                await session.flush()
                profile = StaffProfile(
                    user_id=account.id,
                    department=department,
                    full_name=full_name,
                    age=age,
                    sex=sex,
                    contact_no=contact_no,
                )
                session.add(profile)
                await session.flush()
                return account.id, profile.id
    finally:
        await database.dispose()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="staffdesk")
def cli():
    """StaffDesk — office staff profile service."""


@cli.command("init-db")
def init_db():
    """Create any missing tables."""
    _run(_init_db(Database.from_settings(settings)))
    click.secho("Tables created.", fg="green")


@cli.command("create-staff")
@click.argument("username")
@click.argument("email")
@click.option("--department", "-d", required=True, help="Department name")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Initial password (prompted if omitted)",
)
@click.option("--full-name", help="Full name")
@click.option("--age", type=int, help="Age")
@click.option("--sex", help="Sex")
@click.option("--contact-no", help="Contact number")
def create_staff(username, email, department, password, full_name, age, sex, contact_no):
    """Provision an office staff account and profile."""
    try:
        account_id, staff_id = _run(
            _create_staff(
                Database.from_settings(settings),
                username=username,
                email=email,
                password=password,
                department=department,
                full_name=full_name,
                age=age,
                sex=sex,
                contact_no=contact_no,
            )
        )
    except IntegrityError:
        click.secho("Error: username or email already exists", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created staff account {account_id} (profile {staff_id})", fg="green")


@cli.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host, port, reload):
    """Run the API server."""
    import uvicorn

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(
        "staffdesk.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


def main():
    """Entry point for the `staffdesk` console script."""
    cli()


if __name__ == "__main__":
    main()
