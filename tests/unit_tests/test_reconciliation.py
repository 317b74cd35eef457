"""Tests for applying payment events to reservations."""

from courtbook.models.reservation import ReservationStatus
from courtbook.services.reconciliation import (
    OUTCOME_CONFIRMED,
    OUTCOME_DISCARDED,
    OUTCOME_DUPLICATE,
    OUTCOME_EXPIRED,
    OUTCOME_IGNORED,
    OUTCOME_RELEASED,
    OUTCOME_UNKNOWN,
)
from tests.helpers import NOW, TOMORROW, after, checkout_event


async def make_hold(reservations, db, court, start="10:00", end="11:00"):
    result = await reservations.create_reservation(
        db, court.id, TOMORROW, start, end, "user-1", now=NOW
    )
    return result.reservation


class TestSuccessEvents:
    async def test_completed_checkout_confirms(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        event = checkout_event("checkout.session.completed", "cs_live_1", hold.id)

        outcome = await reconciler.handle_event(db, event, now=after(5))

        assert outcome == OUTCOME_CONFIRMED
        reservation = await reservations.get(db, hold.id)
        assert reservation.state == ReservationStatus.CONFIRMED
        assert reservation.payment_reference == "cs_live_1"

    async def test_redelivered_event_is_duplicate(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        event = checkout_event("checkout.session.completed", "cs_live_1", hold.id)

        assert await reconciler.handle_event(db, event, now=after(5)) == OUTCOME_CONFIRMED
        assert await reconciler.handle_event(db, event, now=after(6)) == OUTCOME_DUPLICATE
        # Redelivery after the original deadline changes nothing either
        assert await reconciler.handle_event(db, event, now=after(90)) == OUTCOME_DUPLICATE

    async def test_success_after_sweep_reports_expired(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        await reservations.release(db, hold.id, "expired", now=after(31))
        event = checkout_event("checkout.session.completed", "cs_live_1", hold.id)

        outcome = await reconciler.handle_event(db, event, now=after(32))

        assert outcome == OUTCOME_EXPIRED
        assert (await reservations.get(db, hold.id)).state == ReservationStatus.RELEASED

    async def test_success_past_deadline_before_sweep_reports_expired(
        self, db, court, reservations, reconciler
    ):
        hold = await make_hold(reservations, db, court)
        event = checkout_event("checkout.session.completed", "cs_live_1", hold.id)

        assert await reconciler.handle_event(db, event, now=after(45)) == OUTCOME_EXPIRED

    async def test_resolves_by_bound_payment_reference(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        hold.payment_reference = "cs_bound"
        await db.commit()
        event = checkout_event("checkout.session.completed", "cs_bound")

        assert await reconciler.handle_event(db, event, now=after(5)) == OUTCOME_CONFIRMED

    async def test_second_payment_for_confirmed_slot_is_discarded(
        self, db, court, reservations, reconciler
    ):
        hold = await make_hold(reservations, db, court)
        await reconciler.handle_event(
            db, checkout_event("checkout.session.completed", "cs_first", hold.id), now=after(5)
        )

        outcome = await reconciler.handle_event(
            db,
            checkout_event("checkout.session.completed", "cs_second", hold.id, event_id="evt_2"),
            now=after(6),
        )

        assert outcome == OUTCOME_DISCARDED
        assert (await reservations.get(db, hold.id)).payment_reference == "cs_first"

    async def test_unpaid_completion_is_ignored(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        event = checkout_event(
            "checkout.session.completed", "cs_live_1", hold.id, payment_status="unpaid"
        )

        assert await reconciler.handle_event(db, event, now=after(5)) == OUTCOME_IGNORED
        assert (await reservations.get(db, hold.id)).state == ReservationStatus.PENDING


class TestFailureEvents:
    async def test_expired_checkout_releases(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        event = checkout_event("checkout.session.expired", "cs_live_1", hold.id)

        assert await reconciler.handle_event(db, event, now=after(5)) == OUTCOME_RELEASED
        reservation = await reservations.get(db, hold.id)
        assert reservation.state == ReservationStatus.RELEASED
        assert reservation.release_cause == "payment_expired"

    async def test_repeated_failure_is_duplicate(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        event = checkout_event("checkout.session.async_payment_failed", "cs_live_1", hold.id)

        assert await reconciler.handle_event(db, event, now=after(5)) == OUTCOME_RELEASED
        assert await reconciler.handle_event(db, event, now=after(6)) == OUTCOME_DUPLICATE
        assert (await reservations.get(db, hold.id)).release_cause == "payment_failed"

    async def test_failure_after_confirmation_is_discarded(self, db, court, reservations, reconciler):
        hold = await make_hold(reservations, db, court)
        await reservations.confirm(db, hold.id, "cs_live_1", now=after(5))
        event = checkout_event("checkout.session.expired", "cs_live_1", hold.id)

        assert await reconciler.handle_event(db, event, now=after(6)) == OUTCOME_DISCARDED
        assert (await reservations.get(db, hold.id)).state == ReservationStatus.CONFIRMED


class TestUnroutableEvents:
    async def test_unknown_reservation(self, db, court, reconciler):
        event = checkout_event("checkout.session.completed", "cs_nobody", 9999)
        assert await reconciler.handle_event(db, event, now=NOW) == OUTCOME_UNKNOWN

    async def test_missing_metadata(self, db, court, reconciler):
        event = checkout_event("checkout.session.completed", "cs_nobody")
        assert await reconciler.handle_event(db, event, now=NOW) == OUTCOME_UNKNOWN

    async def test_unhandled_event_type(self, db, court, reconciler):
        event = checkout_event("customer.created", "cus_123")
        assert await reconciler.handle_event(db, event, now=NOW) == OUTCOME_IGNORED
