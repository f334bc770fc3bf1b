"""
Unit Tests for Recurring Appointments
=====================================
"""

from datetime import date, datetime, timedelta

import pytest

from conftest import FakeClock, StopLoop, TZ
from linedup_core.datastore import (
    Booking,
    BookingStatus,
    Business,
    Frequency,
    InMemoryDataStore,
    RecurringRule,
)
from linedup_core.errors import DataStoreError

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


def _rule(rule_id="r1", business_id="b1", **kwargs):
    fields = dict(
        id=rule_id,
        business_id=business_id,
        client_name="Dana",
        client_phone="0521111111",
        day_of_week=2,
        time="10:00:00",
        duration=30,
    )
    fields.update(kwargs)
    return RecurringRule(**fields)


def _window_business(business_id="b1", days=14):
    return Business(id=business_id, name="Barber Shop", booking_window_enabled=True, booking_window_days=days)


class TestOccurrences:
    """Tests for next-occurrence arithmetic."""

    def test_store_weekday(self):
        from linedup_core.recurring import store_weekday

        assert store_weekday(date(2026, 10, 18)) == 0  # Sunday
        assert store_weekday(MONDAY) == 1
        assert store_weekday(date(2026, 10, 24)) == 6  # Saturday

    def test_weekly_is_strictly_after(self):
        """An occurrence on ``after`` itself should roll to the next week."""
        from linedup_core.recurring import next_occurrence

        assert next_occurrence(TUESDAY, 2) == date(2026, 10, 27)
        assert next_occurrence(MONDAY, 2) == TUESDAY

    def test_sunday(self):
        from linedup_core.recurring import next_occurrence

        assert next_occurrence(date(2026, 10, 24), 0) == date(2026, 10, 25)

    def test_biweekly_parity_follows_anchor(self):
        from linedup_core.recurring import next_occurrence

        on_week = next_occurrence(TUESDAY, 2, Frequency.BIWEEKLY, biweekly_start_date=TUESDAY)
        off_week = next_occurrence(MONDAY, 2, Frequency.BIWEEKLY, biweekly_start_date=date(2026, 10, 13))

        assert on_week == date(2026, 11, 3)
        assert off_week == date(2026, 10, 27)

    def test_biweekly_without_anchor(self):
        """No anchor means no parity adjustment."""
        from linedup_core.recurring import next_occurrence

        assert next_occurrence(MONDAY, 2, Frequency.BIWEEKLY) == TUESDAY

    def test_biweekly_series_steps_fourteen_days(self):
        from linedup_core.recurring import occurrences_until

        dates = list(occurrences_until(
            MONDAY, date(2026, 12, 31), 2, Frequency.BIWEEKLY, biweekly_start_date=TUESDAY,
        ))

        assert dates[0] == TUESDAY
        assert all((b - a).days == 14 for a, b in zip(dates, dates[1:]))
        assert all((d - TUESDAY).days % 14 == 0 for d in dates)

    def test_occurrences_include_bound(self):
        from linedup_core.recurring import occurrences_until

        dates = list(occurrences_until(MONDAY, date(2026, 10, 27), 2))

        assert dates == [TUESDAY, date(2026, 10, 27)]


def _extender(datastore, clock=None, **kwargs):
    from linedup_core.recurring import RecurringExtender
    return RecurringExtender(datastore, clock or FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=TZ)), **kwargs)


def _series(datastore, rule_id="r1"):
    return sorted(
        (b for b in datastore.bookings.values() if b.recurring_appointment_id == rule_id),
        key=lambda b: b.date,
    )


class TestRecurringExtender:
    """Tests for rolling-window materialization."""

    @pytest.mark.asyncio
    async def test_fills_business_window(self):
        datastore = InMemoryDataStore(businesses=[_window_business()], rules=[_rule()])

        report = await _extender(datastore).run_pass()

        assert report.rules == 1
        assert report.created == 2
        series = _series(datastore)
        assert [b.date for b in series] == [TUESDAY, date(2026, 10, 27)]
        assert all(b.status == BookingStatus.CONFIRMED for b in series)
        assert series[0].client_phone == "0521111111"
        assert series[0].duration == 30
        assert datastore.rules["r1"].last_booking_date == date(2026, 10, 27)

    @pytest.mark.asyncio
    async def test_fallback_window(self):
        """Businesses without a window get the 90 day fallback."""
        datastore = InMemoryDataStore(businesses=[Business(id="b1", name="B")], rules=[_rule()])

        report = await _extender(datastore).run_pass()

        series = _series(datastore)
        assert report.created == 13
        assert series[-1].date <= MONDAY + timedelta(days=90)
        assert series[-1].date + timedelta(days=7) > MONDAY + timedelta(days=90)

    @pytest.mark.asyncio
    async def test_second_pass_is_idempotent(self):
        datastore = InMemoryDataStore(businesses=[_window_business()], rules=[_rule()])
        extender = _extender(datastore)

        await extender.run_pass()
        second = await extender.run_pass()

        assert second.created == 0
        assert len(_series(datastore)) == 2
        assert datastore.rules["r1"].last_booking_date == date(2026, 10, 27)

    @pytest.mark.asyncio
    async def test_existing_booking_is_not_duplicated(self):
        existing = Booking(
            business_id="b1",
            date=TUESDAY,
            time="10:00",
            status=BookingStatus.CONFIRMED,
            client_phone="0521111111",
        )
        datastore = InMemoryDataStore(
            businesses=[_window_business()], bookings=[existing], rules=[_rule()],
        )

        report = await _extender(datastore).run_pass()

        assert report.created == 1
        assert [b.date for b in _series(datastore)] == [date(2026, 10, 27)]

    @pytest.mark.asyncio
    async def test_cancelled_booking_does_not_block(self):
        cancelled = Booking(
            business_id="b1",
            date=TUESDAY,
            time="10:00:00",
            status=BookingStatus.CANCELLED,
            client_phone="0521111111",
        )
        datastore = InMemoryDataStore(
            businesses=[_window_business()], bookings=[cancelled], rules=[_rule()],
        )

        report = await _extender(datastore).run_pass()

        assert report.created == 2

    @pytest.mark.asyncio
    async def test_continues_from_last_booking_date(self):
        datastore = InMemoryDataStore(
            businesses=[_window_business(days=30)],
            rules=[_rule(last_booking_date=date(2026, 10, 27))],
        )

        report = await _extender(datastore).run_pass()

        assert [b.date for b in _series(datastore)] == [
            date(2026, 11, 3), date(2026, 11, 10), date(2026, 11, 17),
        ]
        assert report.created == 3
        assert datastore.rules["r1"].last_booking_date == date(2026, 11, 17)

    @pytest.mark.asyncio
    async def test_biweekly_rule(self):
        datastore = InMemoryDataStore(
            businesses=[_window_business(days=30)],
            rules=[_rule(frequency="biweekly", biweekly_start_date=TUESDAY)],
        )

        await _extender(datastore).run_pass()

        assert [b.date for b in _series(datastore)] == [
            TUESDAY, date(2026, 11, 3), date(2026, 11, 17),
        ]

    @pytest.mark.asyncio
    async def test_null_frequency_is_weekly(self):
        rule = RecurringRule.model_validate({
            "id": "r1", "business_id": "b1", "day_of_week": 2, "time": "10:00", "frequency": None,
        })

        assert rule.frequency == Frequency.WEEKLY

    @pytest.mark.asyncio
    async def test_failed_existence_check_skips_occurrence(self):
        """An unanswerable duplicate check must never produce a booking."""
        class BlindStore(InMemoryDataStore):
            async def booking_exists(self, business_id, booking_date, time, client_phone):
                raise DataStoreError("HTTP 400 Error", status_code=400)

        datastore = BlindStore(businesses=[_window_business()], rules=[_rule()])

        report = await _extender(datastore).run_pass()

        assert report.created == 0
        assert report.failed_rules == 0
        assert datastore.bookings == {}
        assert datastore.rules["r1"].last_booking_date is None

    @pytest.mark.asyncio
    async def test_one_bad_rule_does_not_block_others(self):
        class PickyStore(InMemoryDataStore):
            async def create_booking(self, booking):
                if booking.business_id == "b1":
                    raise DataStoreError("HTTP 409 Error", status_code=409)
                return await super().create_booking(booking)

        datastore = PickyStore(
            businesses=[_window_business("b1"), _window_business("b2")],
            rules=[_rule("r1", "b1"), _rule("r2", "b2", client_phone="0522222222")],
        )

        report = await _extender(datastore).run_pass()

        assert report.rules == 2
        assert report.failed_rules == 1
        assert report.created == 2
        assert len(_series(datastore, "r2")) == 2
        assert datastore.rules["r1"].last_booking_date is None

    @pytest.mark.asyncio
    async def test_progress_saved_before_insert_failure(self):
        """The high-water mark should cover what was created before a failure."""
        class FullStore(InMemoryDataStore):
            async def create_booking(self, booking):
                if booking.date > TUESDAY:
                    raise DataStoreError("HTTP 409 Error", status_code=409)
                return await super().create_booking(booking)

        datastore = FullStore(businesses=[_window_business()], rules=[_rule()])

        report = await _extender(datastore).run_pass()

        assert report.created == 1
        assert report.failed_rules == 1
        assert len(_series(datastore)) == 1
        assert datastore.rules["r1"].last_booking_date == TUESDAY

    @pytest.mark.asyncio
    async def test_rule_listing_failure_aborts(self):
        class BrokenStore(InMemoryDataStore):
            async def list_active_recurring_rules(self):
                raise DataStoreError("down")

        report = await _extender(BrokenStore()).run_pass()

        assert report.aborted is True

    @pytest.mark.asyncio
    async def test_inactive_rules_are_ignored(self):
        datastore = InMemoryDataStore(
            businesses=[_window_business()], rules=[_rule(is_active=False)],
        )

        report = await _extender(datastore).run_pass()

        assert report.rules == 0
        assert datastore.bookings == {}

    @pytest.mark.asyncio
    async def test_run_loop_warms_up_then_repeats(self):
        datastore = InMemoryDataStore(businesses=[_window_business()], rules=[_rule()])
        clock = FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=TZ), stop_after=2)
        extender = _extender(datastore, clock, warmup_seconds=60, interval_seconds=3600)

        with pytest.raises(StopLoop):
            await extender.run()

        assert clock.sleeps == [60, 3600]
        assert len(_series(datastore)) == 2

    @pytest.mark.asyncio
    async def test_run_loop_survives_crashed_pass(self):
        """An unexpected error in one pass should not stop the next one."""
        class CrashOnceStore(InMemoryDataStore):
            calls = 0

            async def list_active_recurring_rules(self):
                self.calls += 1
                if self.calls == 1:
                    raise ValueError("unexpected row shape")
                return await super().list_active_recurring_rules()

        datastore = CrashOnceStore(businesses=[_window_business()], rules=[_rule()])
        clock = FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=TZ), stop_after=2)
        extender = _extender(datastore, clock, warmup_seconds=60, interval_seconds=3600)

        with pytest.raises(StopLoop):
            await extender.run()

        assert datastore.calls == 2
        assert clock.sleeps == [60, 3600]
        assert len(_series(datastore)) == 2

    @pytest.mark.asyncio
    async def test_run_loop_survives_malformed_rule_rows(self):
        """A rule row without a weekday should abort passes, not the loop."""
        import httpx

        from linedup_core.config import SupabaseConfig
        from linedup_core.datastore import SupabaseDataStore

        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=[{
                "id": 1,
                "business_id": 7,
                "day_of_week": None,
                "time": "10:00:00",
                "is_active": True,
            }])

        store = SupabaseDataStore(
            SupabaseConfig(url="https://db.example.com", service_key="key"),
            transport=httpx.MockTransport(handler),
        )
        clock = FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=TZ), stop_after=2)
        extender = _extender(store, clock, warmup_seconds=60, interval_seconds=3600)

        with pytest.raises(StopLoop):
            await extender.run()
        await store.close()

        assert clock.sleeps == [60, 3600]
        assert len(requests) == 2
        assert all(r.method == "GET" for r in requests)

    @pytest.mark.asyncio
    async def test_unexpected_rule_error_counts_as_failed(self):
        class OddStore(InMemoryDataStore):
            async def booking_exists(self, business_id, booking_date, time, client_phone):
                if business_id == "b1":
                    raise ValueError("bad comparison")
                return await super().booking_exists(business_id, booking_date, time, client_phone)

        datastore = OddStore(
            businesses=[_window_business("b1"), _window_business("b2")],
            rules=[_rule("r1", "b1"), _rule("r2", "b2", client_phone="0522222222")],
        )

        report = await _extender(datastore).run_pass()

        assert report.failed_rules == 1
        assert report.created == 2
