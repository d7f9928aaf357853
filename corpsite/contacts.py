"""
Contact form messages: public submission and admin inbox management.
"""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import quote

from corpsite.cache import CONTACT_MESSAGES_KEY, InvalidationDispatcher, QueryCache
from corpsite.errors import StoreError
from corpsite.notifications import DESTRUCTIVE, Notification, Notifier
from corpsite.queries import Mutation, QueryResult, ReadQuery, RealtimeSubscription
from corpsite.realtime import ChangeFeed
from corpsite.schemas import ContactMessage, ContactMessageCreate
from corpsite.store import CONTACT_MESSAGES_TABLE, StoreClient

ORDER_BY = "created_at"

logger = logging.getLogger(__name__)


class ContactData:
    def __init__(self, store: StoreClient, cache: QueryCache):
        self.store = store
        self.query: ReadQuery[ContactMessage] = ReadQuery(
            cache, CONTACT_MESSAGES_KEY, self._fetch
        )

    def _fetch(self) -> list[ContactMessage]:
        messages = []
        for row in self.store.select_all(CONTACT_MESSAGES_TABLE, ORDER_BY):
            try:
                messages.append(ContactMessage.from_row(row))
            except StoreError as exc:
                logger.warning(
                    "Skipping contact_messages row %s: %s", row.get("id"), exc
                )
        return messages

    def messages(self) -> QueryResult[ContactMessage]:
        return self.query.result()

    def refetch(self) -> QueryResult[ContactMessage]:
        return self.query.refetch()


class ContactMutations:
    def __init__(self, store: StoreClient, cache: QueryCache, notifier: Notifier):
        self.store = store
        self.cache = cache
        self.notifier = notifier

    def _mutation(self, name: str, success: Notification, failure: Notification):
        return Mutation(
            self.cache, CONTACT_MESSAGES_KEY, self.notifier, success, failure, name
        )

    def create_message(self, payload: ContactMessageCreate) -> ContactMessage:
        mutation = self._mutation(
            "Create message",
            Notification(
                "Message Sent!",
                "Thank you for your message. We'll get back to you soon.",
            ),
            Notification(
                "Error", "Failed to send message. Please try again.", DESTRUCTIVE
            ),
        )
        row = {**payload.model_dump(), "status": "unread"}
        created = mutation.run(lambda: self.store.insert(CONTACT_MESSAGES_TABLE, row))
        return ContactMessage.from_row(created)

    def update_message_status(self, message_id: str, status: str) -> ContactMessage:
        mutation = self._mutation(
            "Update message status",
            Notification(
                "Status Updated", "Message status has been updated successfully."
            ),
            Notification(
                "Error",
                "Failed to update message status. Please try again.",
                DESTRUCTIVE,
            ),
        )
        updated = mutation.run(
            lambda: self.store.update(
                CONTACT_MESSAGES_TABLE, message_id, {"status": status}
            )
        )
        return ContactMessage.from_row(updated)

    def delete_message(self, message_id: str) -> str:
        mutation = self._mutation(
            "Delete message",
            Notification(
                "Message Deleted",
                "The message has been deleted successfully.",
                DESTRUCTIVE,
            ),
            Notification(
                "Error", "Failed to delete message. Please try again.", DESTRUCTIVE
            ),
        )
        return mutation.run(
            lambda: self.store.delete(CONTACT_MESSAGES_TABLE, message_id)
        )


def watch_contacts(feed: ChangeFeed, cache: QueryCache) -> RealtimeSubscription:
    return RealtimeSubscription(
        feed, InvalidationDispatcher(cache), CONTACT_MESSAGES_TABLE
    )


def unread_count(messages: Iterable[ContactMessage]) -> int:
    return sum(1 for message in messages if message.is_unread)


def reply_subject(subject: str) -> str:
    return subject if subject.startswith("Re: ") else f"Re: {subject}"


def reply_mailto(email: str, subject: str) -> str:
    return f"mailto:{email}?subject={quote(reply_subject(subject), safe='')}"


def inbox_row(message: ContactMessage) -> dict:
    return {
        "id": message.id,
        "name": message.name,
        "email": message.email,
        "subject": message.subject,
        "status": message.status,
        "unread": message.is_unread,
        "date": message.created_at.date().isoformat(),
    }


def message_detail(message: ContactMessage) -> dict:
    return {
        **inbox_row(message),
        "message": message.message,
        "received_at": message.created_at.isoformat(),
        "reply_url": reply_mailto(message.email, message.subject),
        "toggle_status": "unread" if message.status == "read" else "read",
    }
