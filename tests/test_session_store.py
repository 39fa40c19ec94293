from __future__ import annotations

import base64
import threading
import time

import pytest

from pipetakeoff.errors import PageOutOfRange, SessionNotFound
from pipetakeoff.sessions import SessionStore


def test_create_and_read_pages_round_trip(store: SessionStore) -> None:
    pages = [b"page-one", b"page-two", b"page-three"]

    session_id = store.create(pages, "plan.pdf")

    session = store.get_session(session_id)
    assert session.file_name == "plan.pdf"
    assert session.page_count == 3
    for number, expected in enumerate(pages, start=1):
        assert store.get_page(session_id, number) == expected


def test_session_ids_are_unique(store: SessionStore) -> None:
    ids = {store.create([b"x"], "a.pdf") for _ in range(20)}
    assert len(ids) == 20
    assert len(store) == 20


@pytest.mark.parametrize("page_number", [0, -1, 4])
def test_page_outside_range_is_rejected(store: SessionStore, page_number: int) -> None:
    session_id = store.create([b"1", b"2", b"3"], "plan.pdf")

    with pytest.raises(PageOutOfRange) as excinfo:
        store.get_page(session_id, page_number)

    assert excinfo.value.page_number == page_number
    assert excinfo.value.page_count == 3


def test_unknown_session_is_not_found(store: SessionStore) -> None:
    with pytest.raises(SessionNotFound) as excinfo:
        store.get_page("missing", 1)
    assert excinfo.value.session_id == "missing"


def test_base64_page_matches_raw_bytes(store: SessionStore) -> None:
    session_id = store.create([b"\x89PNG data"], "plan.pdf")

    encoded = store.get_page_base64(session_id, 1)

    assert base64.b64decode(encoded) == b"\x89PNG data"


def test_session_expires_at_ttl_even_before_sweep(store: SessionStore, fake_clock) -> None:
    session_id = store.create([b"1"], "plan.pdf")

    fake_clock.advance(1799)
    assert store.get_page(session_id, 1) == b"1"

    fake_clock.advance(1)
    with pytest.raises(SessionNotFound):
        store.get_page(session_id, 1)
    # Not yet swept, but unreachable.
    assert len(store) == 1


def test_reads_do_not_extend_lifetime(store: SessionStore, fake_clock) -> None:
    session_id = store.create([b"1"], "plan.pdf")

    for _ in range(2):
        fake_clock.advance(600)
        store.get_page(session_id, 1)
    fake_clock.advance(600)

    with pytest.raises(SessionNotFound):
        store.get_session(session_id)


def test_sweep_removes_only_expired_sessions(store: SessionStore, fake_clock) -> None:
    old_id = store.create([b"old"], "old.pdf")
    fake_clock.advance(1000)
    fresh_id = store.create([b"fresh"], "fresh.pdf")
    fake_clock.advance(800)

    removed = store.sweep()

    assert removed == [old_id]
    assert len(store) == 1
    assert store.get_page(fresh_id, 1) == b"fresh"
    assert store.sweep() == []


def test_non_positive_ttl_is_rejected() -> None:
    with pytest.raises(ValueError):
        SessionStore(ttl_seconds=0)


def test_concurrent_sweep_never_returns_torn_pages(fake_clock) -> None:
    store = SessionStore(ttl_seconds=10, clock=fake_clock)
    pages = [bytes([number]) * 4096 for number in range(4)]
    session_ids = [store.create(pages, f"sheet-{index}.pdf") for index in range(6)]
    stop = threading.Event()
    hits: list[int] = []
    misses: list[int] = []
    failures: list[object] = []

    def read_pages(session_id: str) -> None:
        while not stop.is_set():
            for number, expected in enumerate(pages, start=1):
                try:
                    page = store.get_page(session_id, number)
                except SessionNotFound:
                    misses.append(number)
                    continue
                except Exception as error:
                    failures.append(error)
                    return
                if page != expected:
                    failures.append((session_id, number))
                    return
                hits.append(number)

    def sweep_and_create() -> None:
        while not stop.is_set():
            store.sweep()
            store.create(pages, "late.pdf")
            time.sleep(0.001)

    threads = [threading.Thread(target=read_pages, args=(session_id,)) for session_id in session_ids]
    threads.append(threading.Thread(target=sweep_and_create))
    for thread in threads:
        thread.start()
    try:
        deadline = time.monotonic() + 5.0
        while not hits and time.monotonic() < deadline:
            time.sleep(0.005)
        fake_clock.advance(10)
        while not misses and time.monotonic() < deadline:
            time.sleep(0.005)
        time.sleep(0.05)
    finally:
        stop.set()
        for thread in threads:
            thread.join(5.0)

    assert failures == []
    assert hits and misses
    for session_id in session_ids:
        with pytest.raises(SessionNotFound):
            store.get_session(session_id)
