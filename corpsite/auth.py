"""
Authentication provider abstraction and the admin gate.

The provider owns sessions, passwords and email confirmation. This module
only consumes it: an in-memory provider is included for development and
tests, the hosted one lives in `corpsite.rest`.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from corpsite.errors import AuthError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth"
DASHBOARD_PATH = "/admin/dashboard"
MIN_PASSWORD_LENGTH = 6


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    confirmed: bool = True


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    user: AuthUser
    expires_at: float

    @property
    def is_expired(self) -> bool:
        return time.time() >= self.expires_at


@dataclass(frozen=True)
class AuthStateChange:
    event: AuthEvent
    access_token: str
    session: Optional[AuthSession]


AuthCallback = Callable[[AuthStateChange], None]


class AuthSubscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class AuthProvider(Protocol):
    """Interface the site needs from the managed auth service."""

    def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        ...

    def on_auth_state_change(self, callback: AuthCallback) -> AuthSubscription:
        ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    def sign_up(
        self, email: str, password: str, redirect_to: Optional[str] = None
    ) -> AuthUser:
        ...

    def sign_out(self, access_token: str) -> None:
        ...


@dataclass
class _Listener:
    listeners: "AuthListeners"
    callback: AuthCallback
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.listeners.remove(self)


class AuthListeners:
    """Fan-out for auth state changes, shared by provider implementations."""

    def __init__(self):
        self._items: list[_Listener] = []
        self._lock = threading.Lock()

    def add(self, callback: AuthCallback) -> _Listener:
        listener = _Listener(listeners=self, callback=callback)
        with self._lock:
            self._items.append(listener)
        return listener

    def remove(self, listener: _Listener) -> None:
        with self._lock:
            if listener in self._items:
                self._items.remove(listener)

    def emit(self, change: AuthStateChange) -> None:
        with self._lock:
            targets = list(self._items)
        for listener in targets:
            try:
                listener.callback(change)
            except Exception:
                logger.exception("Auth state listener failed on %s", change.event.value)

    def __len__(self) -> int:
        return len(self._items)


def _hash_password(password: str, salt: Optional[bytes] = None) -> str:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, 100_000)
    return f"{salt.hex()}${digest.hex()}"


def _verify_password(password: str, stored: str) -> bool:
    try:
        salt_hex, digest_hex = stored.split("$")
    except ValueError:
        return False
    candidate = _hash_password(password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate.split("$")[1], digest_hex)


@dataclass
class _UserRecord:
    user: AuthUser
    password_hash: str
    redirect_to: Optional[str] = None


@dataclass
class InMemoryAuthProvider:
    """Auth provider double with the hosted provider's observable behavior."""

    auto_confirm: bool = False
    session_ttl_seconds: int = 3600
    users: Dict[str, _UserRecord] = field(default_factory=dict)
    sessions: Dict[str, AuthSession] = field(default_factory=dict)

    def __post_init__(self):
        self.listeners = AuthListeners()

    def reset(self) -> None:
        self.users.clear()
        self.sessions.clear()

    def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        if not access_token:
            return None
        session = self.sessions.get(access_token)
        if session is None:
            return None
        if session.is_expired:
            self.sessions.pop(access_token, None)
            return None
        return session

    def on_auth_state_change(self, callback: AuthCallback) -> _Listener:
        return self.listeners.add(callback)

    def sign_up(
        self, email: str, password: str, redirect_to: Optional[str] = None
    ) -> AuthUser:
        key = email.strip().lower()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError("Password should be at least 6 characters.", 422)
        if key in self.users:
            raise AuthError("User already registered", 422)
        user = AuthUser(id=uuid.uuid4().hex, email=key, confirmed=self.auto_confirm)
        self.users[key] = _UserRecord(
            user=user, password_hash=_hash_password(password), redirect_to=redirect_to
        )
        logger.info("Registered %s (confirmed=%s)", key, user.confirmed)
        return user

    def confirm_email(self, email: str) -> AuthUser:
        record = self.users.get(email.strip().lower())
        if record is None:
            raise AuthError("User not found", 404)
        record.user = AuthUser(id=record.user.id, email=record.user.email, confirmed=True)
        return record.user

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        record = self.users.get(email.strip().lower())
        if record is None or not _verify_password(password, record.password_hash):
            raise AuthError("Invalid login credentials", 400)
        if not record.user.confirmed:
            raise AuthError("Email not confirmed", 400)
        session = AuthSession(
            access_token=secrets.token_urlsafe(32),
            user=record.user,
            expires_at=time.time() + self.session_ttl_seconds,
        )
        self.sessions[session.access_token] = session
        self.listeners.emit(
            AuthStateChange(AuthEvent.SIGNED_IN, session.access_token, session)
        )
        return session

    def sign_out(self, access_token: str) -> None:
        if self.sessions.pop(access_token, None) is None:
            raise AuthError("Auth session missing!", 401)
        self.listeners.emit(AuthStateChange(AuthEvent.SIGNED_OUT, access_token, None))


class GateState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"


class AuthGate:
    """
    Guards an admin view for its lifetime.

    `open` checks the session; a missing session, or a later sign-out of the
    same token, calls `on_redirect(LOGIN_PATH)`.
    """

    def __init__(
        self,
        provider: AuthProvider,
        on_redirect: Optional[Callable[[str], None]] = None,
    ):
        self.provider = provider
        self.on_redirect = on_redirect
        self.state = GateState.UNAUTHENTICATED
        self.session: Optional[AuthSession] = None
        self.redirected_to: Optional[str] = None
        self._subscription: Optional[AuthSubscription] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state == GateState.AUTHENTICATED

    def open(self, access_token: Optional[str]) -> Optional[AuthSession]:
        self.state = GateState.CHECKING
        session = self.provider.get_session(access_token)
        if session is None:
            self._deny()
            return None
        self.session = session
        self.state = GateState.AUTHENTICATED
        if self._subscription is None:
            self._subscription = self.provider.on_auth_state_change(self._on_change)
        return session

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_change(self, change: AuthStateChange) -> None:
        if self.session is None or change.access_token != self.session.access_token:
            return
        if change.session is None:
            logger.info("Session for %s ended, leaving admin", self.session.user.email)
            self.session = None
            self._deny()
        else:
            self.session = change.session
            self.state = GateState.AUTHENTICATED

    def _deny(self) -> None:
        self.state = GateState.UNAUTHENTICATED
        self.redirected_to = LOGIN_PATH
        if self.on_redirect is not None:
            self.on_redirect(LOGIN_PATH)

    def __enter__(self) -> "AuthGate":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
