"""Seed a scratch database with synthetic messages and time the hot paths.

Reports store open, bulk insert, first-page and deep-page keyset query
latency, and traced Python heap size as a proxy for memory footprint.
The output is meant for people, not for parsing.
"""

from __future__ import annotations

import argparse
import gc
import shutil
import sys
import tempfile
import time
import tracemalloc
from pathlib import Path
from typing import Optional, Sequence

from wachat.database import StoreError
from wachat.messages import Message
from wachat.paging import Cursor
from wachat.store import Store

BENCH_CHAT_JID = "bench@example.com"
BENCH_BODY = "lorem ipsum dolor sit amet, consectetur adipiscing elit"


def _fmt_duration(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.1f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def run(total: int, page_size: int, keep: bool) -> Path:
    """Seed ``total`` messages, time paging, print a report.

    Returns the path of the scratch database, which is removed
    afterwards unless ``keep`` is true.
    """
    print("wachat bench")
    print("============")
    print(f"messages = {total}, page size = {page_size}\n")

    directory = Path(tempfile.mkdtemp(prefix="wachat-bench-"))
    db_path = directory / "wachat.db"
    try:
        print("db path:           ", db_path)

        gc.collect()
        tracemalloc.start()
        try:
            open_start = time.perf_counter()
            with Store(db_path) as store:
                print(f"store open:         {_fmt_duration(time.perf_counter() - open_start)}")
                _bench(store, total, page_size, open_start)
        finally:
            tracemalloc.stop()
        if keep:
            print(f"         (run with -keep; db preserved at: {db_path})")
    finally:
        if not keep:
            shutil.rmtree(directory, ignore_errors=True)
    return db_path


def _bench(store: Store, total: int, page_size: int, open_start: float) -> None:
    seed_start = time.perf_counter()
    for i in range(total):
        store.insert(
            Message(
                wa_id=f"w{i:08d}",
                chat_jid=BENCH_CHAT_JID,
                ts=i + 1,
                body=BENCH_BODY,
            ),
            False,
        )
    seed_dur = time.perf_counter() - seed_start
    rate = total / seed_dur if seed_dur > 0 else float("inf")
    print(f"seed:               {_fmt_duration(seed_dur)}  ({rate:.0f} msgs/s)")

    gc.collect()
    current, peak = tracemalloc.get_traced_memory()
    print(f"Python heap (traced):{current / (1 << 20):.1f} MB")
    print(f"Python heap peak:   {peak / (1 << 20):.1f} MB")

    first_start = time.perf_counter()
    _, cursor = store.page_older(BENCH_CHAT_JID, Cursor(), page_size)
    first_dur = time.perf_counter() - first_start
    print(f"first page:         {_fmt_duration(first_dur)}")

    walk_pages = (total - page_size) * 9 // 10 // page_size
    for _ in range(walk_pages):
        _, cursor = store.page_older(BENCH_CHAT_JID, cursor, page_size)

    deep_start = time.perf_counter()
    store.page_older(BENCH_CHAT_JID, cursor, page_size)
    deep_dur = time.perf_counter() - deep_start
    print(f"deep page (~90%):   {_fmt_duration(deep_dur)}")

    print()
    ratio = deep_dur / first_dur if first_dur > 0 else float("inf")
    print(f"Summary: deep/first ratio = {ratio:.1f}x (keyset target: ~1x)")
    print(f"         total bench time = {_fmt_duration(time.perf_counter() - open_start)}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point; returns the exit status."""
    parser = argparse.ArgumentParser(
        prog="wachat-bench", description="Seed a scratch database and time paging."
    )
    parser.add_argument("-n", type=int, default=100_000, help="number of messages to seed")
    parser.add_argument("-page", "--page", type=int, default=50, help="messages per keyset page")
    parser.add_argument(
        "-keep",
        "--keep",
        action="store_true",
        help="keep the temp DB after the run (path is printed)",
    )
    args = parser.parse_args(argv)
    try:
        run(args.n, args.page, args.keep)
    except StoreError as exc:
        print(f"wachat-bench: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())