"""Authentication service boundary.

Wraps `django.contrib.auth` and simplejwt behind the small surface the
session layer needs: password sign-in, sign-up with profile metadata,
sign-out, token refresh and a state-change stream. The stream is a Django
`Signal` owned by each service instance, so one client's events never reach
another client's stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from django.dispatch import Signal
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Profile

User = get_user_model()

logger = logging.getLogger("dalaghub.auth")


class AuthEvent:
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class AuthSession:
    user_id: int
    email: str
    access_token: str
    refresh_token: str | None = None


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


class AuthService:
    def __init__(self, *, user=None, access_token: str | None = None, refresh_token: str | None = None):
        self.state_changed = Signal()
        self._session: AuthSession | None = None

        # Restore an already-authenticated caller (e.g. a request carrying a JWT).
        if user is not None and getattr(user, "is_authenticated", False):
            self._session = AuthSession(
                user_id=user.id,
                email=user.email,
                access_token=access_token or "",
                refresh_token=refresh_token,
            )

    def get_session(self) -> AuthSession | None:
        return self._session

    def on_state_change(self, receiver) -> Callable[[], None]:
        """Connect `receiver(sender, event, session, **kwargs)`; returns a disconnect callable."""

        self.state_changed.connect(receiver, weak=False)

        def disconnect() -> None:
            self.state_changed.disconnect(receiver)

        return disconnect

    def _emit(self, event: str, session: AuthSession | None) -> None:
        self._session = session
        self.state_changed.send(sender=self.__class__, event=event, session=session)

    def _issue(self, user) -> AuthSession:
        refresh = RefreshToken.for_user(user)
        return AuthSession(
            user_id=user.id,
            email=user.email,
            access_token=str(refresh.access_token),
            refresh_token=str(refresh),
        )

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = authenticate(username=normalize_email(email), password=password)
        if user is None:
            raise AuthError("Invalid login credentials")

        session = self._issue(user)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def create_identity(self, email: str, password: str, metadata: dict):
        """Create the user and its profile row without starting a session."""

        email = normalize_email(email)
        if not email:
            raise AuthError("Email is required")
        if User.objects.filter(username=email).exists():
            raise AuthError("User already registered")

        with transaction.atomic():
            user = User.objects.create_user(username=email, email=email, password=password)
            Profile.objects.create(
                user=user,
                name=str(metadata.get("name") or "").strip(),
                email=email,
                phone=str(metadata.get("phone") or "").strip(),
                location=str(metadata.get("location") or ""),
            )
        return user

    def start_session(self, user) -> AuthSession:
        session = self._issue(user)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str, metadata: dict) -> AuthSession:
        user = self.create_identity(email, password, metadata)
        return self.start_session(user)

    def refresh_session(self) -> AuthSession:
        current = self._session
        if current is None or not current.refresh_token:
            raise AuthError("No refresh token for the current session")

        try:
            refresh = RefreshToken(current.refresh_token)
        except TokenError as exc:
            raise AuthError(str(exc)) from exc

        session = AuthSession(
            user_id=current.user_id,
            email=current.email,
            access_token=str(refresh.access_token),
            refresh_token=current.refresh_token,
        )
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def sign_out(self) -> None:
        current = self._session
        if current is not None and current.refresh_token:
            try:
                token = RefreshToken(current.refresh_token)
            except TokenError:
                # Already expired or blacklisted; the session is gone either way.
                logger.info("sign out with unusable refresh token", extra={"user_id": current.user_id})
            else:
                owner = token.get(jwt_settings.USER_ID_CLAIM)
                if str(owner) == str(current.user_id):
                    token.blacklist()
                else:
                    logger.warning(
                        "sign out with another user's refresh token",
                        extra={"user_id": current.user_id, "token_user_id": owner},
                    )

        self._emit(AuthEvent.SIGNED_OUT, None)
