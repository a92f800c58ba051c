# wachat

The local storage core of a small desktop chat client. Everything the client
shows comes from one SQLite file:

- **Messages**, deduplicated on their network id (`wa_id`), with delivery
  status, quoted replies, edits, revokes, link previews and stars.
- **Chats**, with display name, last-message time, unread counter, and
  pinned / archived / mute state.
- **Keyset paging** over a conversation, newest first, that stays fast however
  deep you scroll, plus a window centred on any message.
- **Full-text search** over message bodies (SQLite FTS5), with highlighted
  snippets and accent-insensitive matching.
- **Reactions** and a small **settings** table for UI preferences.

A separate in-memory **thumbnail cache** keeps decoded images under a byte
budget, evicting only images that are no longer on screen.

The package needs nothing beyond the Python standard library (3.10 or later),
provided the bundled `sqlite3` module was built with FTS5, as it is in
standard CPython builds.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Using the store

`wachat.store.Store` opens (or creates) the database, applies the schema,
adds any columns missing from databases written by older versions and
backfills the full-text index. Opening the same file again is safe. Use it as
a context manager so the connection is closed for you; `close()` may also be
called directly and is a no-op the second time.

```python
from wachat.store import Store
from wachat.messages import Message, Status
from wachat.paging import Cursor

with Store("wachat.db") as store:
    store.upsert_chat("alice@example.com", "Alice")

    created = store.insert(
        Message(wa_id="m1", chat_jid="alice@example.com", ts=1_700_000_000_000, body="hi there"),
        bump_unread=True,
    )
    # created is False if "m1" was already stored; unread is not bumped twice.

    store.update_status("m1", Status.READ)
    store.mark_read("alice@example.com")

    page, cursor = store.page_older("alice@example.com", Cursor(), 50)
    while page:
        ...  # newest first
        page, cursor = store.page_older("alice@example.com", cursor, 50)

    for hit in store.search("there", 20):
        print(hit.chat_name, hit.snippet)  # matches wrapped in [[ ]]
```

Timestamps are Unix milliseconds. A `Message` left with an empty `status` is
stored as `sent`; empty text fields are stored as NULL and read back as `""`.
Every insert keeps the chat's `last_ts` at the newest message seen.

### Operations

Messages and chats:

- `insert(message, bump_unread)` – returns `True` if a new row was written.
- `insert_batch(messages)` – writes many messages in one transaction and
  returns how many were new. Messages without a `wa_id` or `chat_jid` are
  skipped, and unread counters are never touched.
- `upsert_chat(jid, name)` – sets a display name, creating the chat if needed.
- `mark_read(jid)` – clears the unread counter.
- `update_status(wa_id, status)` – accepts a `Status` member or its string.
- `apply_edit(wa_id, new_body)` and `apply_revoke(wa_id)` – set the `edited`
  / `revoked` flags; a revoked message keeps its body.
- `set_starred(wa_id, starred)` and `list_starred(limit)` – starred messages
  across all chats, newest first.

Updates aimed at an unknown message or chat do nothing.

Chat state: `set_pinned(jid, pinned)`, `set_archived(jid, archived)` and
`set_mute_until(jid, mute_until_ms)` (0 unmutes, -1 mutes forever). Each
creates a placeholder chat row first if the chat is not yet known.

Paging: `page_older(chat_jid, before, limit)` returns up to `limit` messages
strictly older than the cursor (a zero `Cursor()` or `None` starts at the
newest end) plus the cursor for the next page; a page shorter than `limit`
means history is exhausted. `page_around(chat_jid, anchor_id, before, after)`
returns up to `after` newer messages, the anchor (by rowid `Message.id`) and
up to `before` older ones, newest first.

Reactions: `set_reaction(target_wa_id, sender_jid, emoji, ts)` keeps one
reaction per sender per message; an empty emoji removes it.
`list_reactions(target_wa_id)` returns them oldest first, and
`reactions_for_chat(target_wa_ids)` returns a dict grouped by target, leaving
out targets with no reactions.

Search: `search(query, limit)` treats the whole query as a literal phrase
(double quotes inside it are turned into single quotes by
`wachat.search.fts_phrase`), orders hits by relevance with newer messages
first on ties, and returns an empty list for a blank query. Each
`SearchHit` carries the chat id and name, message rowid and `wa_id`,
timestamp, sender and snippet.

Settings: `get_setting(key)` returns `""` for a missing key;
`set_setting(key, value)` overwrites.

### Errors

Invalid arguments, such as an empty id or a non-positive limit, and database
failures raise `wachat.database.StoreError`. Asking `page_around` for an
anchor that does not exist in the chat raises
`wachat.paging.MessageNotFoundError`, a subclass of both `StoreError` and
`LookupError`.

`Store.db` exposes the underlying `sqlite3.Connection`. The lower-level
helpers in `wachat.database` (`open_database`, `apply_schema`, `migrate`,
`column_names`, `backfill_fts`) are what `Store` uses to open a file.

## Thumbnail cache

```python
from wachat.media import Cache, Tracker

def decode(path):
    image = load_thumbnail(path)  # your decoder
    return image, estimated_size_in_bytes(image)

cache = Cache(32 * 1024 * 1024, decode)
tracker = Tracker(cache)

tracker.set_visible(["a.jpg", "b.jpg"])  # decodes both -> (2, 0)
tracker.set_visible(["b.jpg", "c.jpg"])  # releases a.jpg, decodes c.jpg -> (1, 1)
tracker.clear()                          # on chat switch or shutdown -> 2
```

`Cache.decode(path)` takes a reference and returns the image, calling the
decode hook only the first time (or after eviction); `Cache.release(path)`
drops one reference. Once an image has no references it may be evicted,
oldest release first, whenever the total decoded size exceeds the budget.
A budget of `0` disables eviction, and images still referenced are never
evicted. A failing hook raises `wachat.media.DecodeError` and nothing is
cached. `Cache.stats()` returns `(entries, total_bytes)` and `path in cache`
tells whether an image is held.

`Tracker.set_visible(paths)` skips empty paths, collapses duplicates and
returns `(decoded, released)`; a path whose decode fails still counts as
decoded. The cache is thread-safe; the tracker is meant to be driven from one
thread.

## Commands

Fill a database with a few demo chats so there is something to look at:

```
wachat-seed
```

It writes to `wachat.db` in the current directory, 40 messages per chat,
spread back in time at seven-minute steps; every third message is from the
local user. Use `--db PATH` and `-n COUNT` to change these. Running it again
on the same file adds nothing new.

Measure store performance against a throw-away database of synthetic
messages:

```
wachat-bench
```

It reports open time, insert rate, traced Python heap, and the latency of
the first page versus a page about 90 % of the way into history. Options:
`-n COUNT` (default 100 000), `--page SIZE` (default 50) and `--keep` to
leave the scratch database on disk.

## What this package does not do

It is storage only. It does not connect to any messaging network, pair a
device or send messages, it has no graphical or terminal interface, and it
does not raise desktop notifications. The thumbnail cache holds whatever
your decode hook returns; it does not read image files itself.