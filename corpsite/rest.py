"""
Clients for the hosted backend's REST surface (table API and auth API).
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from corpsite.auth import (
    AuthEvent,
    AuthListeners,
    AuthSession,
    AuthStateChange,
    AuthUser,
)
from corpsite.errors import AuthError, RowNotFoundError, StoreError
from corpsite.realtime import ChangeEvent, ChangeFeed, ChangeKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def _error_text(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)


class _RestClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not base_url:
            raise ValueError("BACKEND_URL is required for REST clients")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.http = session or requests.Session()
        self.timeout = timeout

    def _headers(self, bearer: Optional[str] = None) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.api_key}",
            "Content-Type": "application/json",
        }


class RestStoreClient(_RestClient):
    """Table CRUD through the hosted backend's REST endpoint."""

    def __init__(self, *args, feed: Optional[ChangeFeed] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.feed = feed

    def _url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _send(self, method: str, table: str, **kwargs) -> requests.Response:
        headers = self._headers()
        headers["Prefer"] = "return=representation"
        try:
            response = self.http.request(
                method,
                self._url(table),
                headers=headers,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise StoreError(str(exc)) from exc
        if response.status_code >= 400:
            code = None
            try:
                code = response.json().get("code")
            except (ValueError, AttributeError):
                pass
            raise StoreError(_error_text(response), code=code)
        return response

    def _publish(self, table: str, kind: ChangeKind, row_id: str) -> None:
        if self.feed is not None:
            self.feed.publish(ChangeEvent(table=table, kind=kind, record_id=row_id))

    def select_all(self, table: str, order_by: str) -> list[dict]:
        response = self._send(
            "GET", table, params={"select": "*", "order": f"{order_by}.desc"}
        )
        return response.json()

    def insert(self, table: str, row: dict) -> dict:
        response = self._send("POST", table, json=[row])
        rows = response.json()
        if not rows:
            raise StoreError(f"Insert into {table} returned no row")
        created = rows[0]
        self._publish(table, ChangeKind.INSERT, str(created.get("id")))
        return created

    def update(self, table: str, row_id: str, fields: dict) -> dict:
        response = self._send(
            "PATCH", table, params={"id": f"eq.{row_id}"}, json=fields
        )
        rows = response.json()
        if not rows:
            raise RowNotFoundError(table, row_id)
        self._publish(table, ChangeKind.UPDATE, row_id)
        return rows[0]

    def delete(self, table: str, row_id: str) -> str:
        response = self._send("DELETE", table, params={"id": f"eq.{row_id}"})
        if not response.json():
            raise RowNotFoundError(table, row_id)
        self._publish(table, ChangeKind.DELETE, row_id)
        return row_id


class RestAuthProvider(_RestClient):
    """Hosted auth API: password sign-in, sign-up, session lookup, logout."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.listeners = AuthListeners()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1/{path}"

    def _call(
        self, method: str, path: str, bearer: Optional[str] = None, **kwargs
    ) -> requests.Response:
        try:
            response = self.http.request(
                method,
                self._url(path),
                headers=self._headers(bearer),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise AuthError(str(exc), 503) from exc
        if response.status_code >= 400:
            raise AuthError(_error_text(response), response.status_code)
        return response

    @staticmethod
    def _user(payload: dict) -> AuthUser:
        return AuthUser(
            id=str(payload.get("id", "")),
            email=payload.get("email", ""),
            confirmed=bool(
                payload.get("email_confirmed_at") or payload.get("confirmed_at")
            ),
        )

    def get_session(self, access_token: Optional[str]) -> Optional[AuthSession]:
        if not access_token:
            return None
        try:
            response = self._call("GET", "user", bearer=access_token)
        except AuthError as exc:
            if exc.status_code in (401, 403):
                return None
            raise
        # The user endpoint does not report expiry; the token is live right now.
        return AuthSession(
            access_token=access_token,
            user=self._user(response.json()),
            expires_at=time.time() + 60,
        )

    def on_auth_state_change(self, callback):
        return self.listeners.add(callback)

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = self._call(
            "POST",
            "token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        payload = response.json()
        session = AuthSession(
            access_token=payload["access_token"],
            user=self._user(payload.get("user") or {}),
            expires_at=time.time() + float(payload.get("expires_in", 3600)),
        )
        self.listeners.emit(
            AuthStateChange(AuthEvent.SIGNED_IN, session.access_token, session)
        )
        return session

    def sign_up(
        self, email: str, password: str, redirect_to: Optional[str] = None
    ) -> AuthUser:
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._call(
            "POST",
            "signup",
            params=params,
            json={"email": email, "password": password},
        )
        payload = response.json()
        return self._user(payload.get("user") or payload)

    def sign_out(self, access_token: str) -> None:
        self._call("POST", "logout", bearer=access_token)
        self.listeners.emit(AuthStateChange(AuthEvent.SIGNED_OUT, access_token, None))
