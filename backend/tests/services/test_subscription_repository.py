"""Subscription Repository - upsert, conditional verify and counts against SQLite.

Invariants:
    - One row per normalized email, whatever the number of subscribes
    - Re-subscribe refreshes token fields only; first_subscribed_at survives
    - mark_verified transitions a row exactly once
"""

from datetime import timedelta

from waitlist.core.token_rules import issue_token


async def test_first_upsert_creates_unverified_row(store, clock):
    issued = issue_token(clock.now())
    record, is_new = await store.upsert_token("user@example.com", issued)

    assert is_new is True
    assert record.email == "user@example.com"
    assert record.token == issued.token
    assert record.token_expiry == issued.expiry
    assert record.verified is False
    assert record.verified_at is None
    assert record.first_subscribed_at == clock.now()


async def test_second_upsert_refreshes_token_and_keeps_first_seen(store, clock):
    first, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))
    clock.advance(hours=2)
    issued = issue_token(clock.now())

    second, is_new = await store.upsert_token("user@example.com", issued)

    assert is_new is False
    assert second.id == first.id
    assert second.token == issued.token
    assert second.token != first.token
    assert second.first_subscribed_at == first.first_subscribed_at
    assert second.last_attempt_at == clock.now()
    assert await store.get_by_token(first.token) is None
    assert (await store.count_summary())["total"] == 1


async def test_resubscribe_keeps_verified_by_default(store, clock):
    record, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))
    assert await store.mark_verified(record.id, record.token, clock.now())

    refreshed, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))

    assert refreshed.verified is True
    assert refreshed.verified_at == clock.now()


async def test_resubscribe_can_reset_verification(store, clock):
    record, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))
    await store.mark_verified(record.id, record.token, clock.now())

    refreshed, _ = await store.upsert_token(
        "user@example.com", issue_token(clock.now()), reset_verification=True,
    )

    assert refreshed.verified is False
    assert refreshed.verified_at is None


async def test_mark_verified_only_once(store, clock):
    record, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))

    assert await store.mark_verified(record.id, record.token, clock.now()) is True
    clock.advance(minutes=5)
    assert await store.mark_verified(record.id, record.token, clock.now()) is False

    current = await store.get_by_email("user@example.com")
    assert current.verified is True
    assert current.verified_at == clock.now() - timedelta(minutes=5)


async def test_mark_verified_rejects_superseded_token(store, clock):
    old, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))
    await store.upsert_token("user@example.com", issue_token(clock.now()))

    assert await store.mark_verified(old.id, old.token, clock.now()) is False
    assert (await store.get_by_email("user@example.com")).verified is False


async def test_token_exists(store, clock):
    record, _ = await store.upsert_token("user@example.com", issue_token(clock.now()))
    assert await store.token_exists(record.token) is True
    assert await store.token_exists("not-a-token") is False


async def test_list_and_count_agree(store, clock):
    for email in ("a@example.com", "b@example.com", "c@example.com"):
        await store.upsert_token(email, issue_token(clock.now()))
        clock.advance(seconds=1)
    record = await store.get_by_email("b@example.com")
    await store.mark_verified(record.id, record.token, clock.now())

    records = await store.list_all()
    assert [r.email for r in records] == [
        "a@example.com", "b@example.com", "c@example.com",
    ]
    assert await store.count_summary() == {
        "total": 3, "verified": 1, "unverified": 2,
    }


async def test_count_summary_on_empty_table(store):
    assert await store.count_summary() == {
        "total": 0, "verified": 0, "unverified": 0,
    }
