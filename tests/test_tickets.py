from datetime import time
from decimal import Decimal

import pytest
from sqlalchemy import false

from boxoffice.core.errors import (
    BookingNotFoundError,
    InvalidStateError,
    SeatTakenError,
    ShowtimeNotFoundError,
    ShowtimeSoldOutError,
    TicketNotFoundError,
    ValidationError,
)
from boxoffice.models.booking import Ticket, TicketType
from boxoffice.services import bookings, scheduler, tickets

from conftest import SHOW_DATE


@pytest.fixture
def booking(db, identity):
    return bookings.create_booking_shell(db, 7, identity)


@pytest.fixture
def other_booking(db, identity):
    return bookings.create_booking_shell(db, 9, identity)


class TestIssueTicket:

    def test_issue_ticket(self, db, booking, showtime_a):
        ticket = tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        assert ticket.id is not None
        assert ticket.seat_number == "F12"
        assert ticket.ticket_type == TicketType.ADULT
        assert ticket.price == Decimal("12.50")

    def test_seat_taken_by_another_booking(self, db, booking, other_booking, showtime_a):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")

        with pytest.raises(SeatTakenError) as exc_info:
            tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")
        assert exc_info.value.seat_number == "F12"
        assert db.query(Ticket).filter(Ticket.booking_id == other_booking.id).count() == 0

    def test_seat_taken_by_confirmed_booking(
        self, db, identity, notifications, booking, other_booking, showtime_a
    ):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        bookings.confirm_booking(db, booking.id, identity, notifications)

        with pytest.raises(SeatTakenError):
            tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")

    def test_seat_number_is_normalized(self, db, booking, other_booking, showtime_a):
        ticket = tickets.issue_ticket(db, booking.id, showtime_a.id, "  f12 ", "adult")
        assert ticket.seat_number == "F12"

        with pytest.raises(SeatTakenError):
            tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")

    def test_unique_constraint_catches_seat_race(
        self, db, booking, other_booking, showtime_a, monkeypatch
    ):
        """A writer that missed the held-seat check is stopped by the unique constraint."""
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")

        with monkeypatch.context() as m:
            m.setattr(
                tickets,
                "active_tickets",
                lambda session, showtime_id: session.query(Ticket).filter(false()),
            )
            with pytest.raises(SeatTakenError):
                tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")

        assert tickets.get_seat_numbers_for_showtime(db, showtime_a.id) == {"F12"}
        assert tickets.list_tickets_for_booking(db, other_booking.id) == []

    def test_same_seat_twice_in_one_booking(self, db, booking, showtime_a):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        with pytest.raises(SeatTakenError):
            tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "child")

    def test_same_seat_at_another_showtime(self, db, booking, room, showtime_a):
        later = scheduler.schedule_showtime(
            db, 1, room.id, SHOW_DATE, time(18, 0), 120, Decimal("12.50")
        )
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        tickets.issue_ticket(db, booking.id, later.id, "F12", "adult")

        assert len(tickets.list_tickets_for_booking(db, booking.id)) == 2

    def test_cancelled_booking_releases_seat(self, db, booking, other_booking, showtime_a):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        bookings.cancel_booking(db, booking.id)

        reclaimed = tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")
        assert reclaimed.booking_id == other_booking.id

    def test_sold_out(self, db, identity, small_room):
        showtime = scheduler.schedule_showtime(
            db, 2, small_room.id, SHOW_DATE, time(20, 0), 90, Decimal("8.00")
        )
        first = bookings.create_booking_shell(db, 7, identity)
        second = bookings.create_booking_shell(db, 8, identity)
        tickets.issue_ticket(db, first.id, showtime.id, "A1", "adult")
        tickets.issue_ticket(db, first.id, showtime.id, "A2", "adult")

        with pytest.raises(ShowtimeSoldOutError):
            tickets.issue_ticket(db, second.id, showtime.id, "A3", "adult")

    def test_price_is_captured_at_issue(self, db, booking, showtime_a):
        ticket = tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")

        showtime_a.price = Decimal("15.00")
        db.commit()

        assert tickets.get_ticket(db, ticket.id).price == Decimal("12.50")

    def test_flat_pricing_ignores_ticket_type(self, db, booking, showtime_a):
        child = tickets.issue_ticket(db, booking.id, showtime_a.id, "F1", "child")
        senior = tickets.issue_ticket(db, booking.id, showtime_a.id, "F2", "senior")
        assert child.price == senior.price == Decimal("12.50")

    def test_custom_pricing_strategy(self, db, booking, showtime_a):
        def half_price_for_children(showtime, ticket_type):
            if ticket_type == TicketType.CHILD:
                return showtime.price / 2
            return showtime.price

        ticket = tickets.issue_ticket(
            db, booking.id, showtime_a.id, "F1", "child", pricing=half_price_for_children
        )
        assert ticket.price == Decimal("6.25")

    def test_booking_must_be_pending(self, db, booking, identity, notifications, showtime_a):
        bookings.confirm_booking(db, booking.id, identity, notifications)

        with pytest.raises(InvalidStateError) as exc_info:
            tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        assert exc_info.value.current_status == "confirmed"

    def test_unknown_showtime(self, db, booking):
        with pytest.raises(ShowtimeNotFoundError):
            tickets.issue_ticket(db, booking.id, 999, "F12", "adult")

    def test_unknown_booking(self, db, showtime_a):
        with pytest.raises(BookingNotFoundError):
            tickets.issue_ticket(db, 999, showtime_a.id, "F12", "adult")

    @pytest.mark.parametrize("seat", ["", "   ", "A" * 11])
    def test_invalid_seat_number(self, db, booking, showtime_a, seat):
        with pytest.raises(ValidationError):
            tickets.issue_ticket(db, booking.id, showtime_a.id, seat, "adult")

    def test_invalid_ticket_type(self, db, booking, showtime_a):
        with pytest.raises(ValidationError):
            tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "student")


class TestDeleteTicket:

    def test_delete_frees_seat(self, db, booking, other_booking, showtime_a):
        ticket = tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        ticket_id = ticket.id

        tickets.delete_ticket(db, ticket_id)

        with pytest.raises(TicketNotFoundError):
            tickets.get_ticket(db, ticket_id)
        tickets.issue_ticket(db, other_booking.id, showtime_a.id, "F12", "adult")

    def test_confirmed_booking_keeps_its_tickets(self, db, booking, identity, notifications, showtime_a):
        ticket = tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        bookings.confirm_booking(db, booking.id, identity, notifications)

        with pytest.raises(InvalidStateError):
            tickets.delete_ticket(db, ticket.id)

    def test_unknown_ticket(self, db):
        with pytest.raises(TicketNotFoundError):
            tickets.delete_ticket(db, 999)


class TestTicketReads:

    def test_taken_seats(self, db, booking, other_booking, showtime_a):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F13", "adult")
        tickets.issue_ticket(db, other_booking.id, showtime_a.id, "A1", "child")
        bookings.cancel_booking(db, other_booking.id)

        assert tickets.get_seat_numbers_for_showtime(db, showtime_a.id) == {"F12", "F13"}

    def test_taken_seats_for_unknown_showtime(self, db):
        with pytest.raises(ShowtimeNotFoundError):
            tickets.get_seat_numbers_for_showtime(db, 999)

    def test_list_for_booking(self, db, booking, showtime_a):
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F13", "adult")
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")

        listed = tickets.list_tickets_for_booking(db, booking.id)
        assert [t.seat_number for t in listed] == ["F13", "F12"]

    def test_list_for_unknown_booking(self, db):
        with pytest.raises(BookingNotFoundError):
            tickets.list_tickets_for_booking(db, 999)

    def test_list_for_customer(self, db, identity, booking, other_booking, showtime_a):
        second = bookings.create_booking_shell(db, 7, identity)
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        tickets.issue_ticket(db, other_booking.id, showtime_a.id, "A1", "adult")
        tickets.issue_ticket(db, second.id, showtime_a.id, "F13", "adult")

        listed = tickets.list_tickets_for_customer(db, 7)
        assert sorted(t.seat_number for t in listed) == ["F12", "F13"]
