"""
SyncHub: shared pollers, reference counting, post-transaction refresh.
"""

from __future__ import annotations

import asyncio

from backend_charity.sync.hub import SyncHub


def counting_fetch():
    state = {"calls": 0}

    async def fetch():
        state["calls"] += 1
        return state["calls"]

    return fetch, state


def test_subscribers_share_one_poller():
    async def run():
        hub = SyncHub()
        fetch, state = counting_fetch()
        first_updates, second_updates = [], []

        first = await hub.subscribe("auctions:live", fetch, on_update=first_updates.append)
        await asyncio.sleep(0.02)
        second = await hub.subscribe("auctions:live", fetch, on_update=second_updates.append)
        calls_after_second = state["calls"]
        count = hub.subscriber_count("auctions:live")
        await hub.refresh("auctions:live")
        await first.cancel()
        still_running = "auctions:live" in hub
        await second.cancel()
        return calls_after_second, count, still_running, hub, first_updates, second_updates

    calls, count, still_running, hub, first_updates, second_updates = asyncio.run(run())
    assert calls == 1
    assert count == 2
    assert still_running
    assert "auctions:live" not in hub
    assert hub.keys == []
    # the late subscriber got the current snapshot right away, then the refresh
    assert [s.value for s in second_updates] == [1, 2]
    assert [s.value for s in first_updates] == [1, 2]


def test_interval_is_minimum_of_requests():
    async def run():
        hub = SyncHub()
        fetch, _ = counting_fetch()
        slow = await hub.subscribe("balance:0xme", fetch, interval_sec=30.0)
        fast = await hub.subscribe("balance:0xme", fetch, interval_sec=8.0)
        with_fast = hub.scheduler("balance:0xme").interval_sec
        await fast.cancel()
        after_cancel = hub.scheduler("balance:0xme").interval_sec
        await slow.cancel()
        return with_fast, after_cancel

    assert asyncio.run(run()) == (8.0, 30.0)


def test_cancelled_subscription_receives_nothing():
    async def run():
        hub = SyncHub()
        fetch, _ = counting_fetch()
        kept_updates, dropped_updates = [], []
        kept = await hub.subscribe("charities", fetch, on_update=kept_updates.append)
        dropped = await hub.subscribe("charities", fetch, on_update=dropped_updates.append)
        await asyncio.sleep(0.02)
        await dropped.cancel()
        dropped_before = len(dropped_updates)
        await hub.refresh("charities")
        snapshot_after_cancel = dropped.snapshot
        await dropped.cancel()
        await hub.aclose()
        return kept, kept_updates, dropped_updates, dropped_before, snapshot_after_cancel

    kept, kept_updates, dropped_updates, dropped_before, snapshot_after_cancel = asyncio.run(run())
    assert len(dropped_updates) == dropped_before
    assert snapshot_after_cancel is None
    assert kept_updates[-1].value == 2
    assert not kept.active


def test_errors_fan_out_to_subscribers():
    async def run():
        hub = SyncHub()
        errors = []

        async def fetch():
            raise RuntimeError("rpc down")

        sub = await hub.subscribe("admin:queue", fetch, on_error=errors.append)
        await asyncio.sleep(0.02)
        await sub.cancel()
        return errors

    errors = asyncio.run(run())
    assert [str(e) for e in errors] == ["rpc down"]


def test_refresh_after_transaction_confirms_once_and_skips_unwatched():
    async def run():
        confirmed = []

        async def confirm(digest):
            confirmed.append(digest)

        hub = SyncHub(confirm=confirm)
        auction_fetch, auction_state = counting_fetch()
        balance_fetch, balance_state = counting_fetch()
        a = await hub.subscribe("auction:0xa1", auction_fetch)
        b = await hub.subscribe("balance:0xme", balance_fetch)
        await asyncio.sleep(0.02)
        results = await hub.refresh_after_transaction(
            ["auction:0xa1", "balance:0xme", "profile:0xme", "auction:0xa1"], "D1"
        )
        nothing = await hub.refresh_after_transaction(["profile:0xme"], "D2")
        await a.cancel()
        await b.cancel()
        return confirmed, results, nothing, auction_state, balance_state

    confirmed, results, nothing, auction_state, balance_state = asyncio.run(run())
    assert confirmed == ["D1"]
    assert set(results) == {"auction:0xa1", "balance:0xme"}
    assert results["auction:0xa1"].value == 2
    assert auction_state["calls"] == 2
    assert balance_state["calls"] == 2
    assert nothing == {}


def test_aclose_stops_everything():
    async def run():
        hub = SyncHub()
        fetch, _ = counting_fetch()
        sub = await hub.subscribe("auctions:live", fetch, interval_sec=0.01)
        scheduler = hub.scheduler("auctions:live")
        await asyncio.sleep(0.03)
        await hub.aclose()
        return hub, sub, scheduler

    hub, sub, scheduler = asyncio.run(run())
    assert hub.keys == []
    assert not sub.active
    assert scheduler.closed
    assert not scheduler.running


def test_cancel_from_inside_on_update_releases_cleanly():
    async def run():
        hub = SyncHub()
        fetch, _ = counting_fetch()
        seen = []
        sub = None

        async def on_update(snap):
            seen.append(snap.value)
            await sub.cancel()

        sub = await hub.subscribe("auctions:live", fetch, interval_sec=0.01, on_update=on_update)
        scheduler = hub.scheduler("auctions:live")
        for _ in range(100):
            if scheduler.closed and not scheduler.running:
                break
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.03)
        leftover = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        return hub, sub, scheduler, seen, leftover

    hub, sub, scheduler, seen, leftover = asyncio.run(run())
    assert seen == [1]
    assert "auctions:live" not in hub
    assert not sub.active
    assert scheduler.closed
    assert not scheduler.running
    assert scheduler.snapshot.value == 1
    assert leftover == []
