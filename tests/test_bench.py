import pytest

from wachat import bench
from wachat.database import StoreError
from wachat.paging import Cursor
from wachat.store import Store


def test_run_keep_preserves_seeded_database(capsys):
    db_path = bench.run(20, 5, True)
    out = capsys.readouterr().out
    assert "messages = 20, page size = 5" in out
    assert str(db_path) in out
    assert db_path.exists()

    with Store(db_path) as s:
        page, _ = s.page_older(bench.BENCH_CHAT_JID, Cursor(), 100)
    assert len(page) == 20
    assert page[0].ts == 20
    assert page[-1].ts == 1
    assert all(m.body == bench.BENCH_BODY for m in page)


def test_run_without_keep_removes_directory(capsys):
    db_path = bench.run(10, 5, False)
    out = capsys.readouterr().out
    assert "deep/first ratio" in out
    assert not db_path.parent.exists()


def test_run_reports_every_stage(capsys):
    bench.run(12, 4, False)
    out = capsys.readouterr().out
    for label in ("store open:", "seed:", "first page:", "deep page (~90%):", "Summary:"):
        assert label in out


def test_run_rejects_non_positive_page_size(capsys):
    with pytest.raises(StoreError):
        bench.run(5, 0, False)


def test_main_succeeds(capsys):
    assert bench.main(["-n", "10", "-page", "5"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("wachat bench")


def test_main_reports_failure(capsys):
    assert bench.main(["-n", "3", "-page", "0"]) == 1
    assert "wachat-bench:" in capsys.readouterr().err