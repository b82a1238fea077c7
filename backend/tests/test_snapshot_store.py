from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from appshare.core.ip_hash import hash_ip
from appshare.core.keys import encode_key
from appshare.schemas.apps import SnapshotData
from appshare.snapshot_store import AppSnapshotStore

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def test_put_then_get_exact(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    ok = await store.put("s1", "v1", SnapshotData(html="<p>hi</p>", signature="sigA", title="Demo", created_at=T0))
    assert ok is True

    snap = await store.get("s1", "v1")
    assert snap is not None
    assert snap.html == "<p>hi</p>"
    assert snap.signature == "sigA"
    assert snap.title == "Demo"
    assert snap.created_at == T0


async def test_put_overwrites_existing_pair(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    await store.put("s1", "v1", {"html": "<p>one</p>", "signature": "a"})
    await store.put("s1", "v1", {"html": "<p>two</p>", "signature": "b", "title": "Second"})

    snap = await store.get("s1", "v1")
    assert snap.html == "<p>two</p>"
    assert snap.signature == "b"
    assert snap.title == "Second"


async def test_missing_html_is_rejected(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    assert await store.put("s1", "v1", {"html": "", "signature": "a"}) is False
    assert await store.put("s1", "v1", {"signature": "a"}) is False
    assert await store.get("s1", "v1") is None


async def test_malformed_serialized_payload_fails_closed(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    assert await store.put("s1", "v1", "{not json") is False
    assert await store.put("s1", "v1", "[1, 2]") is False
    assert await store.put("s1", "v1", json.dumps({"html": "<b>x</b>"})) is True


async def test_legacy_creator_ip_is_hashed(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    await store.put("s1", "v1", {"html": "<p>x</p>", "creatorIP": "1.2.3.4"})
    snap = await store.get("s1", "v1")
    assert snap.creator_ip_hash == hash_ip("1.2.3.4")


async def test_absent_snapshot_is_none(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    assert await store.get("nope", "v1") is None
    assert await store.get("nope", "*") is None


async def test_wildcard_returns_most_recent_version(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    await store.put("s1", "v1", SnapshotData(html="<p>1</p>", created_at=T0))
    await store.put("s1", "v3", SnapshotData(html="<p>3</p>", created_at=T0 + timedelta(hours=2)))
    await store.put("s1", "v2", SnapshotData(html="<p>2</p>", created_at=T0 + timedelta(hours=1)))
    await store.put("s2", "v9", SnapshotData(html="<p>other</p>", created_at=T0 + timedelta(days=1)))

    snap = await store.get("s1", "*")
    assert snap.html == "<p>3</p>"


async def test_get_by_key(session_factory) -> None:
    store = AppSnapshotStore(session_factory)
    await store.put("s1", "v1", {"html": "<p>hi</p>"})

    assert (await store.get_by_key(encode_key("s1", "v1", "9.9.9.9"))).html == "<p>hi</p>"
    assert await store.get_by_key("app:s1") is None


async def test_snapshot_without_creator_has_empty_hash(session_factory) -> None:
    assert SnapshotData(html="<p>x</p>").creator_ip_hash is None

    store = AppSnapshotStore(session_factory)
    await store.put("s1", "v1", {"html": "<p>x</p>"})
    snap = await store.get("s1", "v1")
    assert snap.creator_ip_hash == ""
    assert snap.creator_ip_hash != hash_ip("")
