"""
Tests for the session message store.
"""

from leadcoach.client.message_store import MessageStore
from leadcoach.models import Message, Sender


class TestMessageStore:

    def test_starts_empty(self):
        store = MessageStore()
        assert len(store) == 0
        assert store.messages == ()

    def test_append_keeps_insertion_order(self):
        store = MessageStore()
        first = Message.from_user("Hi")
        second = Message.from_ai("Hello, what's on your mind?")
        store.append(first)
        store.append(second)
        assert [m.id for m in store] == [first.id, second.id]
        assert store.messages[1].sender is Sender.AI

    def test_append_does_not_deduplicate(self):
        store = MessageStore()
        message = Message.from_user("Same")
        store.append(message)
        store.append(message)
        assert len(store) == 2

    def test_snapshot_not_affected_by_later_appends(self):
        store = MessageStore([Message.from_user("one")])
        snapshot = store.messages
        store.append(Message.from_ai("two"))
        assert len(snapshot) == 1
        assert len(store.messages) == 2

    def test_replace_all(self):
        store = MessageStore([Message.from_user("old")])
        loaded = [Message.from_user("m1"), Message.from_ai("m2")]
        store.replace_all(loaded)
        assert [m.text for m in store.messages] == ["m1", "m2"]

    def test_replace_all_copies_input(self):
        loaded = [Message.from_user("m1")]
        store = MessageStore()
        store.replace_all(loaded)
        loaded.append(Message.from_ai("m2"))
        assert len(store) == 1

    def test_clear(self):
        store = MessageStore([Message.from_user("m1"), Message.from_ai("m2")])
        store.clear()
        assert len(store) == 0
