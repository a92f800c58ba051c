import pytest

from wachat.database import StoreError, open_database
from wachat.settings import SettingsOps


class _Store(SettingsOps):
    def __init__(self, conn):
        self._conn = conn


@pytest.fixture
def store(tmp_path):
    conn = open_database(tmp_path / "wachat.db")
    yield _Store(conn)
    conn.close()


def test_get_returns_empty_for_missing_key(store):
    assert store.get_setting("nope") == ""


def test_set_and_get_round_trip(store):
    store.set_setting("theme", "dark")
    assert store.get_setting("theme") == "dark"


def test_set_overwrites(store):
    store.set_setting("density", "comfortable")
    store.set_setting("density", "compact")
    assert store.get_setting("density") == "compact"


def test_settings_persist_across_reopen(tmp_path):
    path = tmp_path / "wachat.db"
    conn = open_database(path)
    _Store(conn).set_setting("sidebar_width", "320")
    conn.close()
    conn = open_database(path)
    try:
        assert _Store(conn).get_setting("sidebar_width") == "320"
    finally:
        conn.close()


def test_requires_key(store):
    with pytest.raises(StoreError):
        store.get_setting("")
    with pytest.raises(StoreError):
        store.set_setting("", "v")