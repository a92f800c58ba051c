from wachat import seed
from wachat.paging import Cursor
from wachat.store import Store


def test_run_creates_every_chat_and_message(tmp_path, capsys):
    db_path = str(tmp_path / "demo.db")
    created = seed.run(db_path, 4)
    assert created == len(seed.DEMO_CHATS) * 4
    assert db_path in capsys.readouterr().out

    with Store(db_path) as s:
        for chat in seed.DEMO_CHATS:
            page, _ = s.page_older(chat.jid, Cursor(), 100)
            assert len(page) == 4
            assert all(m.body in seed.SAMPLE_MESSAGES for m in page)
            assert {m.sender_jid for m in page} == {"", chat.sender}


def test_chat_names_and_ordering(tmp_path, capsys):
    db_path = str(tmp_path / "demo.db")
    seed.run(db_path, 3)
    with Store(db_path) as s:
        names = [
            row[0]
            for row in s.db.execute("SELECT name FROM chats ORDER BY last_ts DESC")
        ]
    assert names == [chat.name for chat in seed.DEMO_CHATS]
    assert names[0] == "Alice"


def test_unread_counts_only_incoming(tmp_path, capsys):
    db_path = str(tmp_path / "demo.db")
    seed.run(db_path, 6)
    with Store(db_path) as s:
        for chat in seed.DEMO_CHATS:
            page, _ = s.page_older(chat.jid, Cursor(), 100)
            incoming = sum(1 for m in page if m.sender_jid)
            (unread,) = s.db.execute(
                "SELECT unread FROM chats WHERE jid = ?", (chat.jid,)
            ).fetchone()
            assert unread == incoming


def test_rerun_is_idempotent(tmp_path, capsys):
    db_path = str(tmp_path / "demo.db")
    first = seed.run(db_path, 5)
    second = seed.run(db_path, 5)
    assert first == len(seed.DEMO_CHATS) * 5
    assert second == 0
    with Store(db_path) as s:
        (count,) = s.db.execute("SELECT COUNT(*) FROM messages").fetchone()
    assert count == first


def test_main_seeds_given_path(tmp_path, capsys):
    db_path = tmp_path / "cli.db"
    assert seed.main(["-db", str(db_path), "-n", "2"]) == 0
    with Store(db_path) as s:
        (count,) = s.db.execute("SELECT COUNT(*) FROM chats").fetchone()
    assert count == len(seed.DEMO_CHATS)


def test_main_reports_failure(tmp_path, capsys):
    bad_path = tmp_path / "missing-dir" / "demo.db"
    assert seed.main(["-db", str(bad_path), "-n", "1"]) == 1
    assert "wachat-seed:" in capsys.readouterr().err