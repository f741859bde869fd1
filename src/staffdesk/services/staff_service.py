"""Staff service — login, profile lookup and the profile update transaction.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database. Errors are raised
as domain exceptions (staffdesk.exceptions); the HTTP mapping lives in
the exception handlers.

The update is the only multi-step write: password, account identity
fields and profile fields change together or not at all, and the
`profileUpdated` broadcast goes out only after the commit succeeded.
"""

from typing import Any, Optional

import structlog
from fastapi import status
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdesk.auth.jwt import SessionClaims
from staffdesk.auth.password import (
    hash_password_async,
    verify_password_async,
    verify_unknown_user_async,
)
from staffdesk.db.models import OFFICE_STAFF_ROLE, Account, StaffProfile
from staffdesk.db.updates import build_sparse_update, supplied
from staffdesk.exceptions import (
    EmailTaken,
    InvalidCredentials,
    UsernameTaken,
    WrongPassword,
)
from staffdesk.realtime.pubsub import ProfileNotifier
from staffdesk.schemas.staff import ProfileUpdate, StaffProfileRead

logger = structlog.get_logger()

accounts = Account.__table__
office_staff = StaffProfile.__table__


class StaffService:
    """Business logic for office staff accounts."""

    def __init__(self, db: AsyncSession, notifier: Optional[ProfileNotifier] = None):
        self.db = db
        self.notifier = notifier

    # ─── Login ──────────────────────────────────────────

    async def authenticate(self, username: str, password: str) -> SessionClaims:
        """Check credentials and return the claims for a new session.

        Learn: Unknown username and wrong password raise the same
        InvalidCredentials so the response doesn't reveal which usernames
        exist.
        """
        q = (
            select(Account, StaffProfile)
            .join(StaffProfile, StaffProfile.user_id == Account.id)
            .where(Account.username == username, Account.role == OFFICE_STAFF_ROLE)
        )
        row = (await self.db.execute(q)).first()
        if row is None:
            # Same bcrypt cost as a wrong password, so timing reveals nothing.
            await verify_unknown_user_async(password)
            logger.info("staff.login_failed", username=username, reason="unknown_user")
            raise InvalidCredentials()

        account, profile = row
        if not await verify_password_async(password, account.password):
            logger.info("staff.login_failed", username=username, reason="bad_password")
            raise InvalidCredentials()

        logger.info("staff.login", account_id=account.id)
        return SessionClaims(
            account_id=account.id,
            staff_id=profile.id,
            username=account.username,
            role=account.role,
            department=profile.department,
        )

    # ─── Profile ────────────────────────────────────────

    async def get_profile(self, account_id: int) -> Optional[StaffProfileRead]:
        """Joined account + staff profile view, None if no such staff account."""
        q = (
            select(
                Account.id,
                Account.username,
                Account.email,
                StaffProfile.department,
                StaffProfile.full_name,
                StaffProfile.age,
                StaffProfile.sex,
                StaffProfile.contact_no,
            )
            .join(StaffProfile, StaffProfile.user_id == Account.id)
            .where(Account.id == account_id, Account.role == OFFICE_STAFF_ROLE)
        )
        row = (await self.db.execute(q)).mappings().first()
        if row is None:
            return None
        return StaffProfileRead.model_validate(dict(row))

    async def update_profile(self, account_id: int, changes: ProfileUpdate) -> None:
        """Apply a partial profile update atomically.

        Steps (all inside the session's transaction):
        1. password change, if both current and new password are given
        2. username/email, after checking no other account holds them
        3. profile fields (full name, age, sex, contact number)

        Any failure rolls the whole thing back. Falsy values (empty
        string, 0) count as "not supplied" and leave the column untouched.
        """
        log = logger.bind(account_id=account_id)
        identity_fields = supplied(changes.account_fields())

        try:
            if changes.wants_password_change:
                await self._change_password(
                    account_id, changes.current_password, changes.new_password
                )

            if identity_fields:
                await self._ensure_identity_available(account_id, identity_fields)
                await self.db.execute(
                    build_sparse_update(accounts, accounts.c.id, account_id, identity_fields)
                )

            profile_stmt = build_sparse_update(
                office_staff, office_staff.c.user_id, account_id, changes.profile_fields()
            )
            if profile_stmt is not None:
                await self.db.execute(profile_stmt)

            await self.db.commit()
        except IntegrityError as e:
            # Another writer claimed the username/email between our check and write.
            await self.db.rollback()
            log.warning("staff.update_conflict", error=str(e.orig))
            duplicate = self._duplicate_error(e, identity_fields)
            if duplicate is None:
                raise
            raise duplicate from e
        except Exception as e:
            await self.db.rollback()
            log.info("staff.update_rolled_back", error=type(e).__name__)
            raise

        log.info(
            "staff.profile_updated",
            password_changed=changes.wants_password_change,
            fields=sorted(identity_fields) + sorted(supplied(changes.profile_fields())),
        )
        if self.notifier is not None:
            self.notifier.notify_profile_updated(account_id)

    # ─── Helpers ────────────────────────────────────────

    async def _change_password(
        self, account_id: int, current_password: str, new_password: str
    ) -> None:
        stored_hash = (
            await self.db.execute(select(Account.password).where(Account.id == account_id))
        ).scalar_one_or_none()
        if stored_hash is None:
            raise InvalidCredentials(
                "User not found", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        if not await verify_password_async(current_password, stored_hash):
            raise WrongPassword()

        new_hash = await hash_password_async(new_password)
        await self.db.execute(
            update(accounts).where(accounts.c.id == account_id).values(password=new_hash)
        )

    async def _ensure_identity_available(
        self, account_id: int, fields: dict[str, Any]
    ) -> None:
        """Raise if another account already holds the requested username/email.

        Username collisions are reported ahead of email collisions.
        """
        clauses = [getattr(Account, name) == value for name, value in fields.items()]
        q = select(Account.username, Account.email).where(
            Account.id != account_id, or_(*clauses)
        )
        holders = (await self.db.execute(q)).all()

        wanted_username = fields.get("username")
        wanted_email = fields.get("email")
        if wanted_username and any(h.username == wanted_username for h in holders):
            raise UsernameTaken()
        if wanted_email and any(h.email == wanted_email for h in holders):
            raise EmailTaken()

    @staticmethod
    def _duplicate_error(
        exc: IntegrityError, fields: dict[str, Any]
    ) -> Optional[Exception]:
        """Map a unique violation back to UsernameTaken / EmailTaken.

        Only the constraint name (or, failing that, the column reference in
        the driver message) is inspected, never the duplicated value itself:
        Postgres echoes the value, e.g. `Key (email)=(username@x.com)`.
        """
        column = violated_unique_column(exc)
        if column == "username" and "username" in fields:
            return UsernameTaken()
        if column == "email" and "email" in fields:
            return EmailTaken()
        return None


# Constraint names (Postgres/MySQL) and column references (Postgres DETAIL,
# SQLite) that identify which unique rule on `accounts` was violated.
_UNIQUE_MARKERS = {
    "username": ("uq_accounts_username", "accounts.username", "key (username)="),
    "email": ("uq_accounts_email", "accounts.email", "key (email)="),
}


def violated_unique_column(exc: IntegrityError) -> Optional[str]:
    """Name the `accounts` column whose unique constraint `exc` reports."""
    # asyncpg exposes the constraint name on the wrapped driver error.
    driver_error = exc.orig.__cause__ if exc.orig is not None else None
    constraint = getattr(driver_error, "constraint_name", None) or getattr(
        exc.orig, "constraint_name", None
    )
    if constraint:
        for column, markers in _UNIQUE_MARKERS.items():
            if constraint == markers[0]:
                return column
        return None

    detail = str(exc.orig).lower()
    for column, markers in _UNIQUE_MARKERS.items():
        if any(marker in detail for marker in markers):
            return column
    return None
