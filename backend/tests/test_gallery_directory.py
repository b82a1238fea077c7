from __future__ import annotations

from datetime import timedelta

from appshare.core.ip_hash import hash_ip
from appshare.gallery_cache import GalleryCache
from appshare.gallery_service import GalleryDirectory
from appshare.schemas.apps import GalleryView
from appshare.upvote_ledger import UpvoteLedger

CREATOR = "1.2.3.4"


async def _add(directory: GalleryDirectory, session_id: str, version: str = "v1", **kwargs) -> bool:
    return await directory.add(
        session_id=session_id,
        version=version,
        title=kwargs.pop("title", "Demo"),
        description=kwargs.pop("description", ""),
        signature=kwargs.pop("signature", "sigA"),
        creator_ip=kwargs.pop("creator_ip", CREATOR),
        **kwargs,
    )


async def test_add_stores_hash_and_zero_votes(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    assert await _add(directory, "s1") is True

    entry = await directory.get_entry("s1", "v1")
    assert entry.creator_ip_hash == hash_ip(CREATOR)
    assert entry.upvote_count == 0
    assert entry.created_at == clock.now


async def test_duplicate_add_fails_and_keeps_original(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    ledger = UpvoteLedger(session_factory, cache, clock=clock)
    await _add(directory, "s1")
    original = await directory.get_entry("s1", "v1")
    await ledger.upvote("s1", "v1", "5.6.7.8")

    clock.advance(hours=1)
    assert await _add(directory, "s1", title="Changed", creator_ip="9.9.9.9") is False

    entry = await directory.get_entry("s1", "v1")
    assert entry.created_at == original.created_at
    assert entry.upvote_count == 1
    assert entry.title == "Demo"
    assert entry.creator_ip_hash == hash_ip(CREATOR)


async def test_add_invalidates_cache(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    assert await directory.list() == ()
    assert cache.is_warm

    await _add(directory, "s1")
    assert not cache.is_warm
    assert [e.session_id for e in await directory.list()] == ["s1"]


async def test_list_serves_cached_snapshot_until_invalidated(session_factory, clock) -> None:
    cache = GalleryCache(ttl_seconds=30)
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    await _add(directory, "s1")
    first = await directory.list()

    fetches = 0
    original_fetch = directory.fetch_all

    async def counting_fetch():
        nonlocal fetches
        fetches += 1
        return await original_fetch()

    directory.fetch_all = counting_fetch
    assert await directory.list() is first
    assert fetches == 0

    cache.invalidate()
    await directory.list()
    assert fetches == 1


async def test_fetch_all_pages_past_page_size(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, page_size=2, clock=clock)
    for n in range(5):
        clock.advance(minutes=1)
        await _add(directory, f"s{n}")

    items = await directory.fetch_all()
    assert len(items) == 5
    assert [i.session_id for i in items] == ["s4", "s3", "s2", "s1", "s0"]


async def test_fetch_all_exact_multiple_of_page_size(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, page_size=2, clock=clock)
    for n in range(4):
        await _add(directory, f"s{n}")
    assert len(await directory.fetch_all()) == 4


async def test_trending_excludes_old_entries_regardless_of_votes(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    ledger = UpvoteLedger(session_factory, cache, clock=clock)
    await _add(directory, "old", created_at=clock.now - timedelta(hours=25))
    await _add(directory, "fresh", created_at=clock.now - timedelta(hours=2))
    for n in range(3):
        await ledger.upvote("old", "v1", f"10.0.0.{n}")

    trending = await directory.list_view(GalleryView.TRENDING)
    popular = await directory.list_view(GalleryView.POPULAR)

    assert [e.session_id for e in trending] == ["fresh"]
    assert [e.session_id for e in popular] == ["old", "fresh"]


async def test_remove_requires_matching_ip(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    ledger = UpvoteLedger(session_factory, cache, clock=clock)
    await _add(directory, "s1")
    await ledger.upvote("s1", "v1", "5.6.7.8")

    assert await directory.remove("s1", "v1", "6.6.6.6") is False
    assert await directory.get_entry("s1", "v1") is not None
    assert await ledger.count("s1", "v1") == 1

    assert await directory.remove("s1", "v1", CREATOR) is True
    assert await directory.get_entry("s1", "v1") is None
    assert await ledger.count("s1", "v1") == 0


async def test_remove_cascades_votes_and_allows_relisting(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    ledger = UpvoteLedger(session_factory, cache, clock=clock)
    await _add(directory, "s1")
    await ledger.upvote("s1", "v1", "5.6.7.8")
    await directory.remove("s1", "v1", CREATOR)

    assert await _add(directory, "s1") is True
    # The old vote went with the old entry, so the same voter counts again.
    assert await ledger.upvote("s1", "v1", "5.6.7.8") == 1


async def test_remove_unknown_entry_is_false(session_factory, cache, clock) -> None:
    directory = GalleryDirectory(session_factory, cache, clock=clock)
    assert await directory.remove("missing", "v1", CREATOR) is False
