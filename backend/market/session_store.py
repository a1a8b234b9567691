from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from django.db import DatabaseError, transaction

from . import results
from .auth_service import AuthError, AuthEvent, AuthService, AuthSession
from .catalog import LOCATIONS
from .models import Profile, Role, UserRole
from .observable import Store, TaskQueue
from .results import Result

logger = logging.getLogger("dalaghub.session")


@dataclass(frozen=True)
class ProfileData:
    id: int
    name: str
    email: str
    phone: str
    location: str
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Profile) -> "ProfileData":
        return cls(
            id=row.user_id,
            name=row.name,
            email=row.email,
            phone=row.phone,
            location=row.location,
            created_at=row.created_at,
        )


class SessionStore(Store):
    """Current identity, its profile and its roles.

    State only changes in response to auth service events, `logout` and
    `refresh_profile`. Profile and role rows are loaded by a task queued from
    the event handler; callers run `tasks.drain()` to settle the store.
    """

    def __init__(self, auth: AuthService, *, tasks: TaskQueue | None = None):
        super().__init__()
        self.auth = auth
        self.tasks = tasks if tasks is not None else TaskQueue()

        self.session: AuthSession | None = None
        self.profile: ProfileData | None = None
        self.roles: list[str] = []
        self.is_loading = True
        self.error: str | None = None

        self._disconnect = auth.on_state_change(self._on_auth_state_change)
        self._on_auth_state_change(sender=auth.__class__, event=AuthEvent.INITIAL_SESSION, session=auth.get_session())

    @property
    def user_id(self) -> int | None:
        return self.session.user_id if self.session is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_seller(self) -> bool:
        return Role.SELLER in self.roles

    def close(self) -> None:
        self._disconnect()

    def _on_auth_state_change(self, sender, event: str, session: AuthSession | None, **kwargs) -> None:
        self.session = session

        if session is None:
            self._clear()
            self._notify()
            return

        # Never touch the database from inside the auth callback.
        self.is_loading = True
        self._notify()
        user_id = session.user_id
        self.tasks.enqueue(lambda: self._load_profile(user_id))

    def _clear(self) -> None:
        self.profile = None
        self.roles = []
        self.is_loading = False
        self.error = None

    def _load_profile(self, user_id: int) -> None:
        if self.user_id != user_id:
            # Signed out or switched users while this task was queued.
            return

        try:
            row = Profile.objects.filter(user_id=user_id).first()
            roles = list(UserRole.objects.filter(user_id=user_id).values_list("role", flat=True))
        except DatabaseError as exc:
            logger.warning("profile fetch failed", exc_info=True, extra={"user_id": user_id})
            self.error = str(exc)
            self.is_loading = False
            self._notify()
            return

        self.profile = ProfileData.from_row(row) if row is not None else None
        self.roles = sorted(roles)
        self.error = None
        self.is_loading = False
        self._notify()

    def login(self, email: str, password: str) -> Result:
        try:
            self.auth.sign_in_with_password(email, password)
        except AuthError as exc:
            return Result.fail(str(exc), code=results.NOT_AUTHENTICATED)
        return Result.ok()

    def register(
        self,
        name: str,
        email: str,
        password: str,
        location: str,
        roles: Iterable[str],
        *,
        phone: str | None = None,
    ) -> Result:
        wanted = []
        for role in roles or []:
            if role not in Role.values:
                return Result.fail(f"Unknown role: {role}", code=results.VALIDATION)
            if role not in wanted:
                wanted.append(role)
        if not wanted:
            return Result.fail("Select at least one role", code=results.VALIDATION)
        if location not in LOCATIONS:
            return Result.fail("Select a valid location", code=results.VALIDATION)

        metadata = {"name": name, "phone": phone or "", "location": location}

        # Identity, profile and roles commit together or not at all.
        try:
            with transaction.atomic():
                user = self.auth.create_identity(email, password, metadata)
                UserRole.objects.bulk_create([UserRole(user=user, role=role) for role in wanted])
        except AuthError as exc:
            return Result.fail(str(exc), code=results.VALIDATION)
        except DatabaseError as exc:
            logger.warning("registration failed", exc_info=True)
            return Result.fail(str(exc), code=results.REMOTE)

        self.auth.start_session(user)
        return Result.ok()

    def logout(self) -> None:
        self.auth.sign_out()
        if self.session is not None or self.profile is not None or self.roles:
            self.session = None
            self._clear()
            self._notify()

    def refresh_profile(self) -> None:
        if self.user_id is None:
            return
        self._load_profile(self.user_id)
