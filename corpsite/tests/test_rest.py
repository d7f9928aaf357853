import unittest
from unittest import mock

import requests

from corpsite.auth import AuthEvent
from corpsite.errors import AuthError, RowNotFoundError, StoreError
from corpsite.realtime import ChangeKind, InMemoryChangeFeed
from corpsite.rest import RestAuthProvider, RestStoreClient


def make_response(status_code=200, payload=None):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = payload
    response.text = ""
    response.reason = "Error"
    return response


class RestStoreClientTests(unittest.TestCase):
    def setUp(self):
        self.http = mock.Mock(spec=requests.Session)
        self.feed = InMemoryChangeFeed()
        self.store = RestStoreClient(
            "https://backend.example.com/", "anon-key", session=self.http, feed=self.feed
        )

    def test_select_all_orders_descending(self):
        self.http.request.return_value = make_response(payload=[{"id": "1"}])
        rows = self.store.select_all("blogs", "published_at")
        self.assertEqual(rows, [{"id": "1"}])

        args, kwargs = self.http.request.call_args
        self.assertEqual(args, ("GET", "https://backend.example.com/rest/v1/blogs"))
        self.assertEqual(kwargs["params"], {"select": "*", "order": "published_at.desc"})
        self.assertEqual(kwargs["headers"]["apikey"], "anon-key")
        self.assertEqual(kwargs["headers"]["Prefer"], "return=representation")

    def test_insert_returns_row_and_publishes(self):
        self.http.request.return_value = make_response(201, [{"id": "abc", "title": "T"}])
        row = self.store.insert("blogs", {"title": "T"})
        self.assertEqual(row["id"], "abc")
        self.assertEqual(self.http.request.call_args.kwargs["json"], [{"title": "T"}])
        self.assertEqual(self.feed.published[0].kind, ChangeKind.INSERT)

    def test_update_of_missing_row(self):
        self.http.request.return_value = make_response(payload=[])
        with self.assertRaises(RowNotFoundError):
            self.store.update("blogs", "missing", {"title": "x"})
        self.assertEqual(
            self.http.request.call_args.kwargs["params"], {"id": "eq.missing"}
        )
        self.assertEqual(self.feed.published, [])

    def test_delete(self):
        self.http.request.return_value = make_response(payload=[{"id": "abc"}])
        self.assertEqual(self.store.delete("contact_messages", "abc"), "abc")
        self.assertEqual(self.feed.published[0].kind, ChangeKind.DELETE)

    def test_backend_error_message_is_kept(self):
        self.http.request.return_value = make_response(
            400, {"code": "23502", "message": 'null value in column "author"'}
        )
        with self.assertRaises(StoreError) as ctx:
            self.store.insert("blogs", {"title": "T"})
        self.assertEqual(ctx.exception.message, 'null value in column "author"')
        self.assertEqual(ctx.exception.code, "23502")

    def test_network_failure(self):
        self.http.request.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(StoreError):
            self.store.select_all("blogs", "published_at")

    def test_base_url_is_required(self):
        with self.assertRaises(ValueError):
            RestStoreClient("", "key")


class RestAuthProviderTests(unittest.TestCase):
    def setUp(self):
        self.http = mock.Mock(spec=requests.Session)
        self.provider = RestAuthProvider(
            "https://backend.example.com", "anon-key", session=self.http
        )

    def test_sign_in_emits_signed_in(self):
        self.http.request.return_value = make_response(
            payload={
                "access_token": "tok",
                "expires_in": 3600,
                "user": {"id": "u1", "email": "a@example.com", "email_confirmed_at": "2025-01-01"},
            }
        )
        changes = []
        self.provider.on_auth_state_change(changes.append)
        session = self.provider.sign_in_with_password("a@example.com", "secret1")

        self.assertEqual(session.access_token, "tok")
        self.assertTrue(session.user.confirmed)
        self.assertEqual([c.event for c in changes], [AuthEvent.SIGNED_IN])
        args, kwargs = self.http.request.call_args
        self.assertEqual(args[1], "https://backend.example.com/auth/v1/token")
        self.assertEqual(kwargs["params"], {"grant_type": "password"})

    def test_sign_in_failure_keeps_provider_message(self):
        self.http.request.return_value = make_response(
            400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}
        )
        with self.assertRaises(AuthError) as ctx:
            self.provider.sign_in_with_password("a@example.com", "bad")
        self.assertEqual(ctx.exception.message, "Invalid login credentials")

    def test_sign_up_passes_redirect(self):
        self.http.request.return_value = make_response(
            payload={"id": "u1", "email": "a@example.com"}
        )
        user = self.provider.sign_up(
            "a@example.com", "secret1", redirect_to="http://site/admin/dashboard"
        )
        self.assertFalse(user.confirmed)
        self.assertEqual(
            self.http.request.call_args.kwargs["params"],
            {"redirect_to": "http://site/admin/dashboard"},
        )

    def test_get_session(self):
        self.assertIsNone(self.provider.get_session(None))

        self.http.request.return_value = make_response(401, {"msg": "invalid JWT"})
        self.assertIsNone(self.provider.get_session("expired"))

        self.http.request.return_value = make_response(
            payload={"id": "u1", "email": "a@example.com"}
        )
        session = self.provider.get_session("tok")
        self.assertEqual(session.user.email, "a@example.com")
        headers = self.http.request.call_args.kwargs["headers"]
        self.assertEqual(headers["Authorization"], "Bearer tok")

    def test_sign_out_emits_signed_out(self):
        self.http.request.return_value = make_response(204, None)
        changes = []
        self.provider.on_auth_state_change(changes.append)
        self.provider.sign_out("tok")
        self.assertEqual(changes[0].event, AuthEvent.SIGNED_OUT)
        self.assertIsNone(changes[0].session)


if __name__ == "__main__":
    unittest.main()
