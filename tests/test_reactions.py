import pytest

from wachat.database import StoreError, open_database
from wachat.reactions import Reaction, ReactionOps


class _Store(ReactionOps):
    def __init__(self, conn):
        self._conn = conn


@pytest.fixture
def store(tmp_path):
    conn = open_database(tmp_path / "wachat.db")
    yield _Store(conn)
    conn.close()


def test_set_reaction_new_upsert(store):
    store.set_reaction("w1", "alice", "👍", 100)
    assert store.list_reactions("w1") == [Reaction("w1", "alice", "👍", 100)]


def test_set_reaction_replace(store):
    store.set_reaction("w1", "alice", "👍", 100)
    store.set_reaction("w1", "alice", "❤", 200)
    assert store.list_reactions("w1") == [Reaction("w1", "alice", "❤", 200)]


def test_set_reaction_empty_removes(store):
    store.set_reaction("w1", "alice", "👍", 100)
    store.set_reaction("w1", "alice", "", 200)
    assert store.list_reactions("w1") == []


def test_set_reaction_different_senders_coexist(store):
    store.set_reaction("w1", "alice", "👍", 100)
    store.set_reaction("w1", "bob", "❤", 200)
    reactions = store.list_reactions("w1")
    assert [r.sender_jid for r in reactions] == ["alice", "bob"]


def test_list_reactions_oldest_first(store):
    store.set_reaction("w1", "bob", "❤", 300)
    store.set_reaction("w1", "alice", "👍", 100)
    assert [r.ts for r in store.list_reactions("w1")] == [100, 300]


def test_reactions_for_chat_groups_by_target(store):
    store.set_reaction("w1", "alice", "👍", 100)
    store.set_reaction("w1", "bob", "❤", 110)
    store.set_reaction("w2", "alice", "🎉", 200)
    store.set_reaction("w3", "bob", "🤔", 300)

    groups = store.reactions_for_chat(["w1", "w2", "w-missing"])
    assert len(groups["w1"]) == 2
    assert len(groups["w2"]) == 1
    assert "w3" not in groups
    assert "w-missing" not in groups


def test_reactions_for_chat_empty_input(store):
    assert store.reactions_for_chat([]) == {}


def test_set_reaction_requires_args(store):
    with pytest.raises(StoreError):
        store.set_reaction("", "alice", "👍", 1)
    with pytest.raises(StoreError):
        store.set_reaction("w1", "", "👍", 1)


def test_list_reactions_requires_target(store):
    with pytest.raises(StoreError):
        store.list_reactions("")