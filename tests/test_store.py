"""Tests for the in-memory live message store."""

from __future__ import annotations

import threading
import time

from twitchcord.store import LiveMessageStore


def test_put_get_pop():
    store = LiveMessageStore()
    key = ("1", "https://discord.example/a")

    assert store.get(key) is None
    store.put(key, {"id": "m-1"})
    assert key in store
    assert len(store) == 1
    assert store.pop(key) == {"id": "m-1"}
    assert store.pop(key) is None
    assert len(store) == 0


def test_keys_are_independent():
    store = LiveMessageStore()
    store.put(("1", "a"), {"id": "x"})
    store.put(("1", "b"), {"id": "y"})
    assert store.pop(("1", "a")) == {"id": "x"}
    assert store.get(("1", "b")) == {"id": "y"}


def test_lock_key_serialises_same_key():
    store = LiveMessageStore()
    key = ("1", "a")
    order = []

    def worker(name):
        with store.lock_key(key):
            order.append(f"{name}-start")
            time.sleep(0.05)
            order.append(f"{name}-end")

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("first", "second")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert order[0].endswith("-start")
    assert order[1] == order[0].replace("start", "end")


def test_lock_key_does_not_block_other_keys():
    store = LiveMessageStore()
    acquired = threading.Event()

    with store.lock_key(("1", "a")):
        def other():
            with store.lock_key(("2", "b")):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        assert acquired.wait(timeout=2)
        thread.join()
