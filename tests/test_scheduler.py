from datetime import date, time
from decimal import Decimal

import pytest

from boxoffice.core.errors import (
    InvalidRoomError,
    InvalidStateError,
    OverlapError,
    ShowtimeNotFoundError,
    ValidationError,
)
from boxoffice.models.room import Room
from boxoffice.models.showtime import Showtime
from boxoffice.services import bookings, scheduler, tickets
from boxoffice.services.scheduler import ShowtimeRequest, end_time_of, intervals_overlap

from conftest import SHOW_DATE


def request_for(room_id, start, duration, show_date=SHOW_DATE, movie_id=1, price="10.00"):
    return ShowtimeRequest(
        movie_id=movie_id,
        room_id=room_id,
        show_date=show_date,
        start_time=start,
        duration_minutes=duration,
        price=Decimal(price),
    )


class TestIntervals:

    def test_end_time_wraps_past_midnight(self):
        assert end_time_of(time(23, 30), 90) == time(1, 0)

    def test_abutting_intervals_do_not_overlap(self):
        assert not intervals_overlap((840, 960), (960, 1020))

    def test_one_minute_overlap(self):
        assert intervals_overlap((840, 960), (959, 1020))


class TestScheduleShowtime:

    def test_room_scenario(self, db, room, showtime_a):
        """A 14:00+120 is stored; B 15:30 overlaps it; C 16:00 abuts it."""
        with pytest.raises(OverlapError):
            scheduler.schedule_showtimes(db, [request_for(room.id, time(15, 30), 60)])

        c = scheduler.schedule_showtimes(db, [request_for(room.id, time(16, 0), 60)])[0]
        assert c.id is not None
        assert c.start_time == time(16, 0)

    def test_capacity_copied_from_room(self, showtime_a):
        assert showtime_a.total_seats == 50

    def test_rejected_overlap_leaves_storage_unchanged(self, db, room, showtime_a):
        before = db.query(Showtime).count()
        with pytest.raises(OverlapError):
            scheduler.schedule_showtimes(db, [request_for(room.id, time(15, 59), 30)])
        assert db.query(Showtime).count() == before

    def test_show_ending_as_another_starts_is_accepted(self, db, room, showtime_a):
        earlier = scheduler.schedule_showtimes(db, [request_for(room.id, time(12, 0), 120)])
        assert len(earlier) == 1

    def test_same_time_in_another_room_is_accepted(self, db, room, showtime_a):
        other = Room(name="Screen 2", seat_count=80)
        db.add(other)
        db.commit()

        created = scheduler.schedule_showtimes(db, [request_for(other.id, time(14, 0), 120)])
        assert created[0].total_seats == 80

    def test_same_time_on_another_date_is_accepted(self, db, room, showtime_a):
        created = scheduler.schedule_showtimes(
            db, [request_for(room.id, time(14, 0), 120, show_date=date(2024, 6, 2))]
        )
        assert len(created) == 1

    def test_batch_is_all_or_nothing(self, db, room):
        batch = [
            request_for(room.id, time(10, 0), 90),
            request_for(room.id, time(18, 0), 90),
            request_for(room.id, time(11, 0), 60),  # overlaps the first entry
        ]
        with pytest.raises(OverlapError):
            scheduler.schedule_showtimes(db, batch)
        assert db.query(Showtime).count() == 0

    def test_batch_of_back_to_back_shows(self, db, room):
        batch = [
            request_for(room.id, time(10, 0), 120),
            request_for(room.id, time(12, 0), 120),
            request_for(room.id, time(14, 0), 120),
        ]
        created = scheduler.schedule_showtimes(db, batch)
        assert [s.start_time for s in created] == [time(10, 0), time(12, 0), time(14, 0)]

    def test_late_show_blocks_next_morning(self, db, room):
        scheduler.schedule_showtimes(db, [request_for(room.id, time(23, 0), 120)])

        with pytest.raises(OverlapError):
            scheduler.schedule_showtimes(
                db, [request_for(room.id, time(0, 30), 60, show_date=date(2024, 6, 2))]
            )
        created = scheduler.schedule_showtimes(
            db, [request_for(room.id, time(1, 0), 60, show_date=date(2024, 6, 2))]
        )
        assert len(created) == 1

    def test_early_show_blocks_previous_late_show(self, db, room):
        scheduler.schedule_showtimes(
            db, [request_for(room.id, time(0, 30), 60, show_date=date(2024, 6, 2))]
        )
        with pytest.raises(OverlapError):
            scheduler.schedule_showtimes(db, [request_for(room.id, time(23, 30), 90)])

    def test_unknown_room(self, db):
        with pytest.raises(InvalidRoomError) as exc_info:
            scheduler.schedule_showtimes(db, [request_for(999, time(14, 0), 120)])
        assert exc_info.value.room_id == 999

    def test_room_without_seats(self, db):
        empty = Room(name="Closed for renovation", seat_count=0)
        db.add(empty)
        db.commit()
        with pytest.raises(InvalidRoomError):
            scheduler.schedule_showtimes(db, [request_for(empty.id, time(14, 0), 120)])

    @pytest.mark.parametrize("duration", [0, -10, 24 * 60 + 1])
    def test_invalid_duration(self, db, room, duration):
        with pytest.raises(ValidationError):
            scheduler.schedule_showtimes(db, [request_for(room.id, time(14, 0), duration)])

    def test_negative_price(self, db, room):
        with pytest.raises(ValidationError):
            scheduler.schedule_showtimes(db, [request_for(room.id, time(14, 0), 90, price="-1")])

    def test_empty_batch(self, db):
        with pytest.raises(ValidationError):
            scheduler.schedule_showtimes(db, [])


class TestDeleteShowtime:

    def test_delete_unsold_showtime(self, db, showtime_a):
        showtime_id = showtime_a.id
        scheduler.delete_showtime(db, showtime_id)
        with pytest.raises(ShowtimeNotFoundError):
            scheduler.get_showtime(db, showtime_id)

    def test_showtime_with_tickets_is_kept(self, db, identity, showtime_a):
        booking = bookings.create_booking_shell(db, 7, identity)
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")

        with pytest.raises(InvalidStateError):
            scheduler.delete_showtime(db, showtime_a.id)
        assert scheduler.get_showtime(db, showtime_a.id)

    def test_delete_after_booking_cancelled(self, db, identity, showtime_a):
        booking = bookings.create_booking_shell(db, 7, identity)
        tickets.issue_ticket(db, booking.id, showtime_a.id, "F12", "adult")
        bookings.cancel_booking(db, booking.id)

        scheduler.delete_showtime(db, showtime_a.id)

    def test_unknown_showtime(self, db):
        with pytest.raises(ShowtimeNotFoundError):
            scheduler.delete_showtime(db, 12345)


class TestScheduleReads:

    def test_list_for_movie_in_start_order(self, db, room):
        scheduler.schedule_showtimes(db, [
            request_for(room.id, time(20, 0), 90, movie_id=3),
            request_for(room.id, time(10, 0), 90, movie_id=3),
            request_for(room.id, time(14, 0), 90, movie_id=4),
        ])
        listed = scheduler.list_showtimes_for_movie(db, 3)
        assert [s.start_time for s in listed] == [time(10, 0), time(20, 0)]

    def test_room_schedule_filtered_by_date(self, db, room, showtime_a):
        scheduler.schedule_showtimes(
            db, [request_for(room.id, time(14, 0), 120, show_date=date(2024, 6, 2))]
        )
        found, showtimes = scheduler.list_room_schedule(db, room.id, SHOW_DATE)
        assert found.id == room.id
        assert [s.id for s in showtimes] == [showtime_a.id]

        _, everything = scheduler.list_room_schedule(db, room.id)
        assert len(everything) == 2

    def test_room_schedule_for_unknown_room(self, db):
        with pytest.raises(InvalidRoomError):
            scheduler.list_room_schedule(db, 999)
