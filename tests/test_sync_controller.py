import asyncio

from potluck.errors import FetchError, WriteError
from potluck.models import SignupForm, SignupRecord
from potluck.normalizers import fingerprint
from potluck.sync import VALIDATION_MESSAGE, SyncController

from tests.helpers.sheet_stub import SheetStub

ALEX = SignupRecord("Alex", "Chips", "2", "", "2024-01-01T10:00:00Z")
SAM = SignupRecord("Sam", "Cups", "", "", "2024-01-02T10:00:00Z")


def _controller(stub: SheetStub, **kw) -> SyncController:
    kw.setdefault("resync_delay", 0.0)
    kw.setdefault("refresh_interval", 0.01)
    return SyncController(stub, **kw)


# ---- refresh -------------------------------------------------------------------


def test_refresh_replaces_state_with_reconciled_snapshot():
    stub = SheetStub([[ALEX, SAM]])
    ctl = _controller(stub)

    ok = asyncio.run(ctl.refresh())

    assert ok is True
    assert ctl.records == (SAM, ALEX)
    assert ctl.error == ""
    assert ctl.loading is False
    assert [g.item for g in ctl.grouped] == ["Chips", "Cups"]


def test_refresh_failure_keeps_prior_state_and_sets_error():
    stub = SheetStub([[ALEX], FetchError("Lecture impossible.")])
    ctl = _controller(stub)

    async def go():
        await ctl.refresh()
        return await ctl.refresh(show_spinner=True)

    ok = asyncio.run(go())

    assert ok is False
    assert ctl.records == (ALEX,)
    assert ctl.error == "Lecture impossible."
    assert ctl.refreshing is False
    assert ctl.loading is False


def test_refresh_clears_previous_error_on_success():
    stub = SheetStub([FetchError("down"), [ALEX]])
    ctl = _controller(stub)

    async def go():
        await ctl.refresh()
        assert ctl.error == "down"
        await ctl.refresh()

    asyncio.run(go())

    assert ctl.error == ""
    assert ctl.records == (ALEX,)


def test_refresh_flags_seen_by_listeners():
    stub = SheetStub([[ALEX]])
    seen: list[tuple[bool, bool]] = []
    ctl = _controller(stub, listeners=[lambda c: seen.append((c.loading, c.refreshing))])

    asyncio.run(ctl.refresh(show_spinner=True))

    # Start: loading (empty list) + refreshing; end: both cleared.
    assert seen == [(True, True), (False, False)]


def test_loading_only_set_when_list_is_empty():
    stub = SheetStub([[ALEX], [ALEX, SAM]])
    seen: list[bool] = []
    ctl = _controller(stub)

    async def go():
        await ctl.refresh()
        ctl.add_listener(lambda c: seen.append(c.loading))
        await ctl.refresh()

    asyncio.run(go())

    assert seen == [False, False]


# ---- submit --------------------------------------------------------------------


def test_submit_validation_failure_makes_no_network_call():
    stub = SheetStub([[]])
    ctl = _controller(stub)

    ok = asyncio.run(ctl.submit(SignupForm(name="", item="Chips")))

    assert ok is False
    assert ctl.error == VALIDATION_MESSAGE
    assert stub.posted == []
    assert stub.fetch_calls == 0
    assert ctl.submitting is False


def test_submit_blank_item_is_rejected():
    stub = SheetStub([[]])
    ctl = _controller(stub)

    assert asyncio.run(ctl.submit(SignupForm(name="Alex", item="   "))) is False
    assert stub.posted == []


def test_submit_success_inserts_optimistically_and_keeps_name():
    stub = SheetStub([[SAM]])
    ctl = _controller(stub, resync_delay=3600)
    form = SignupForm(name=" Alex ", item=" Chips ", qty="2 ", note=" salées")

    async def go():
        await ctl.refresh()
        ok = await ctl.submit(form)
        records = ctl.records
        await ctl.close()
        return ok, records

    ok, records = asyncio.run(go())

    assert ok is True
    assert stub.posted == [form]
    new = records[0]
    assert (new.name, new.item, new.qty, new.note) == ("Alex", "Chips", "2", "salées")
    assert new.created_at.endswith("Z")
    assert records[1:] == (SAM,)
    assert ctl.form == SignupForm(name=" Alex ")
    assert ctl.error == ""
    assert ctl.submitting is False


def test_submit_write_failure_surfaces_message_without_insert():
    stub = SheetStub([[SAM]], post_results=[WriteError("quota exceeded")])
    ctl = _controller(stub)
    form = SignupForm(name="Alex", item="Chips")

    async def go():
        await ctl.refresh()
        return await ctl.submit(form)

    ok = asyncio.run(go())

    assert ok is False
    assert ctl.error == "quota exceeded"
    assert ctl.records == (SAM,)
    # Form left untouched so the user can retry.
    assert ctl.form == form


def test_submit_schedules_resync_that_reconciles_confirmed_row():
    stub = SheetStub([[SAM]])
    ctl = _controller(stub, resync_delay=0.0)
    confirmed = SignupRecord("Alex", "Chips", "", "", "2024-01-03T10:00:00Z")

    async def go():
        await ctl.refresh()
        stub.add_snapshot([SAM, confirmed])
        await ctl.submit(SignupForm(name="alex", item="chips"))
        assert len(ctl.records) == 2
        await ctl.wait_pending()

    asyncio.run(go())

    assert stub.fetch_calls == 2
    # The optimistic row was replaced by the sheet's copy, not duplicated.
    assert ctl.records == (confirmed, SAM)


def test_optimistic_row_survives_resync_before_sheet_catches_up():
    stub = SheetStub([[SAM]])
    ctl = _controller(stub, resync_delay=0.0)

    async def go():
        await ctl.refresh()
        await ctl.submit(SignupForm(name="Alex", item="Chips"))
        await ctl.wait_pending()

    asyncio.run(go())

    assert {fingerprint(r) for r in ctl.records} == {
        fingerprint(SAM),
        fingerprint(SignupRecord("Alex", "Chips")),
    }


# ---- periodic tick -------------------------------------------------------------


def test_tick_is_skipped_while_submitting():
    stub = SheetStub([[SAM]])
    stub.post_gate = asyncio.Event()
    ctl = _controller(stub, resync_delay=3600)

    async def go():
        submit = asyncio.create_task(ctl.submit(SignupForm(name="Alex", item="Chips")))
        await asyncio.sleep(0)
        assert ctl.submitting is True
        ticked = await ctl.tick()
        stub.post_gate.set()
        await submit
        await ctl.close()
        return ticked

    ticked = asyncio.run(go())

    assert ticked is False
    assert stub.fetch_calls == 0


def test_tick_refreshes_when_idle():
    stub = SheetStub([[ALEX]])
    ctl = _controller(stub)

    assert asyncio.run(ctl.tick()) is True
    assert stub.fetch_calls == 1


def test_run_refreshes_periodically_until_stopped():
    stub = SheetStub([[ALEX]])
    ctl = _controller(stub, refresh_interval=0.01)

    async def go():
        stop = asyncio.Event()
        runner = asyncio.create_task(ctl.run(stop))
        while stub.fetch_calls < 3:
            await asyncio.sleep(0.005)
        stop.set()
        await runner

    asyncio.run(go())

    assert stub.fetch_calls >= 3
    assert ctl.records == (ALEX,)


def test_late_refresh_merges_into_current_state():
    # A refresh that started before a submission resolves after it: the
    # optimistic row is kept because the stale snapshot lacks it.
    stub = SheetStub([[SAM]])
    stub.fetch_gate = asyncio.Event()
    ctl = _controller(stub, resync_delay=3600)

    async def go():
        pending = asyncio.create_task(ctl.refresh())
        await asyncio.sleep(0)
        await ctl.submit(SignupForm(name="Alex", item="Chips"))
        stub.fetch_gate.set()
        await pending
        await ctl.close()

    asyncio.run(go())

    assert [r.name for r in ctl.records][-1] == "Sam"
    assert any(r.name == "Alex" for r in ctl.records)


# ---- lifecycle -----------------------------------------------------------------


def test_close_cancels_pending_resync_and_closes_client():
    stub = SheetStub([[]])
    ctl = _controller(stub, resync_delay=3600)

    async def go():
        async with ctl:
            await ctl.submit(SignupForm(name="Alex", item="Chips"))

    asyncio.run(go())

    assert stub.closed is True
    assert stub.fetch_calls == 0
