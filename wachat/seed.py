"""Populate a database with a few demo chats and varied messages.

Meant for local demos and manual testing of the interface.
"""

from __future__ import annotations

import argparse
import random
import sys
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from wachat.database import StoreError
from wachat.messages import Message
from wachat.store import Store

_MINUTE_MS = 60_000


@dataclass(frozen=True)
class DemoChat:
    """A demo chat and the person who writes to it."""

    jid: str
    name: str
    sender: str


DEMO_CHATS: tuple[DemoChat, ...] = (
    DemoChat(jid="alice@example.com", name="Alice", sender="alice@example.com"),
    DemoChat(jid="bob@example.com", name="Bob Carter", sender="bob@example.com"),
    DemoChat(jid="family@example.com", name="Family ❤", sender="mum@example.com"),
    DemoChat(jid="work@example.com", name="Work — engineering", sender="lead@example.com"),
    DemoChat(jid="ada@example.com", name="Ada Lovelace", sender="ada@example.com"),
)

SAMPLE_MESSAGES: tuple[str, ...] = (
    "hey, are you free tonight?",
    "sure — what time?",
    "I'll send the link in a sec",
    "thx 🙏",
    "that meeting was painful",
    "haha agreed",
    "running 10m late, sorry",
    "no worries, see you soon",
    "check this out: https://example.com",
    "who's bringing dessert?",
    "I can pick something up",
    "yes please",
    "weather is awful today",
    "stay warm out there",
    "new bench shows 0.5MB heap for 100k msgs 👀",
    "that's basically free",
    "shipping the v0 today",
    "🥳",
)


def run(db_path: str, per_chat: int) -> int:
    """Seed the database at ``db_path``; return how many messages were new.

    Every third message in a chat is from the local user (empty sender).
    Seeding is idempotent: rerunning creates nothing new.
    """
    rng = random.Random(42)
    now = int(time.time() * 1000)
    created = 0
    with Store(db_path) as store:
        for chat_index, chat in enumerate(DEMO_CHATS):
            store.upsert_chat(chat.jid, chat.name)
            # Each chat's newest message sits at a different offset so the
            # chat list has a clear ordering; older messages spread back.
            newest_offset_min = chat_index * 30
            for i in range(per_chat):
                ts = now - (i * 7 + newest_offset_min) * _MINUTE_MS
                sender = "" if i % 3 == 0 else chat.sender
                message = Message(
                    wa_id=f"seed-{chat.jid}-{i:05d}",
                    chat_jid=chat.jid,
                    sender_jid=sender,
                    ts=ts,
                    body=rng.choice(SAMPLE_MESSAGES),
                )
                if store.insert(message, bool(sender)):
                    created += 1
    print(f"seeded {len(DEMO_CHATS)} chats x {per_chat} messages into {db_path}")
    return created


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point; returns the exit status."""
    parser = argparse.ArgumentParser(
        prog="wachat-seed", description="Populate a wachat database with demo chats."
    )
    parser.add_argument("-db", "--db", default="wachat.db", help="path to the wachat DB to seed")
    parser.add_argument("-n", type=int, default=40, help="messages per chat")
    args = parser.parse_args(argv)
    try:
        run(args.db, args.n)
    except StoreError as exc:
        print(f"wachat-seed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())