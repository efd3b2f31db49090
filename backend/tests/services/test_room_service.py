"""
房间服务测试 - 有效房态计算与房态看板
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from frontdesk.models.ontology import (
    Room, RoomStatus, RoomCategory, Reservation, ReservationStatus, StayType, Transaction,
    TransactionType
)
from frontdesk.models.schemas import RoomCreate, RoomUpdate
from frontdesk.services.room_service import RoomService, effective_status

D = date(2025, 3, 10)


def _make_room(number="101", status=RoomStatus.AVAILABLE):
    return Room(room_number=number, category=RoomCategory.FOUNTAIN_DELUXE,
                price=Decimal("5000"), status=status)


def _make_reservation(rooms=("101",), check_in=D, check_out=D + timedelta(days=2),
                      status=ReservationStatus.PENDING):
    return Reservation(room_numbers=list(rooms), guest_ids=[], room_rates={},
                       check_in=check_in, check_out=check_out, status=status)


class TestEffectiveStatus:
    """有效房态计算"""

    def test_no_reservation_keeps_available(self):
        assert effective_status(_make_room(), [], D) == RoomStatus.AVAILABLE

    def test_pending_reservation_reads_reserved(self):
        res = _make_reservation()
        assert effective_status(_make_room(), [res], D) == RoomStatus.RESERVED

    def test_checked_in_reservation_reads_occupied(self):
        res = _make_reservation(status=ReservationStatus.CHECKED_IN)
        assert effective_status(_make_room(), [res], D + timedelta(days=1)) == RoomStatus.OCCUPIED

    def test_check_in_day_inclusive_check_out_day_exclusive(self):
        """入住日计入，离店日不计入"""
        res = _make_reservation(status=ReservationStatus.CHECKED_IN)
        room = _make_room()
        assert effective_status(room, [res], D) == RoomStatus.OCCUPIED
        assert effective_status(room, [res], D + timedelta(days=2)) == RoomStatus.AVAILABLE
        assert effective_status(room, [res], D - timedelta(days=1)) == RoomStatus.AVAILABLE

    @pytest.mark.parametrize("status", [ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT])
    def test_inactive_reservations_ignored(self, status):
        res = _make_reservation(status=status)
        assert effective_status(_make_room(), [res], D) == RoomStatus.AVAILABLE

    def test_other_rooms_reservation_ignored(self):
        res = _make_reservation(rooms=("102",))
        assert effective_status(_make_room("101"), [res], D) == RoomStatus.AVAILABLE

    @pytest.mark.parametrize("physical", [RoomStatus.DIRTY, RoomStatus.OUT_OF_ORDER])
    def test_housekeeping_states_kept_without_reservation(self, physical):
        assert effective_status(_make_room(status=physical), [], D) == physical

    @pytest.mark.parametrize("physical", [RoomStatus.RESERVED, RoomStatus.OCCUPIED])
    def test_stale_physical_state_reads_available(self, physical):
        """物理状态为预订/在住但当日无预订，视为空闲"""
        assert effective_status(_make_room(status=physical), [], D) == RoomStatus.AVAILABLE

    def test_reservation_overrides_dirty(self):
        res = _make_reservation(status=ReservationStatus.CHECKED_IN)
        assert effective_status(_make_room(status=RoomStatus.DIRTY), [res], D) == RoomStatus.OCCUPIED


class TestRoomMaintenance:
    """房间维护"""

    def test_create_room_publishes_insert(self, db_session, publisher, events):
        service = RoomService(db_session, publisher)
        room = service.create_room(RoomCreate(
            room_number="301", category=RoomCategory.TWIN_DELUXE, price=Decimal("6500")
        ))

        assert room.status == RoomStatus.AVAILABLE
        assert events[-1].event_type == "rooms.changed"
        assert events[-1].data["change"] == "INSERT"
        assert events[-1].data["new"]["room_number"] == "301"

    def test_create_duplicate_room(self, db_session, publisher, sample_rooms):
        with pytest.raises(ValueError, match="已存在"):
            RoomService(db_session, publisher).create_room(RoomCreate(
                room_number="101", category=RoomCategory.TWIN_DELUXE, price=Decimal("1")
            ))

    def test_update_room_price(self, db_session, publisher, sample_rooms):
        room = RoomService(db_session, publisher).update_room("101", RoomUpdate(price=Decimal("5500")))
        assert room.price == Decimal("5500")

    def test_update_status_publishes_old_and_new(self, db_session, publisher, events, sample_rooms):
        RoomService(db_session, publisher).update_room_status("102", RoomStatus.DIRTY)

        event = events[-1]
        assert event.data["change"] == "UPDATE"
        assert event.data["old"]["status"] == "AVAILABLE"
        assert event.data["new"]["status"] == "DIRTY"

    def test_update_status_unknown_room(self, db_session, publisher):
        with pytest.raises(LookupError):
            RoomService(db_session, publisher).update_room_status("999", RoomStatus.DIRTY)

    def test_list_rooms_ordered_and_filtered(self, db_session, sample_rooms):
        service = RoomService(db_session)
        assert [r.room_number for r in service.get_rooms()] == ["101", "102", "201"]
        assert [r.room_number for r in service.get_rooms(category=RoomCategory.ROYAL_SUITE)] == ["201"]


class TestStatusBoard:
    """房态看板"""

    def _seed(self, db_session, today):
        db_session.add(Reservation(
            room_numbers=["101"], guest_ids=[], room_rates={},
            check_in=today, check_out=today + timedelta(days=1),
            status=ReservationStatus.CHECKED_IN, stay_type=StayType.CHECK_IN
        ))
        db_session.add(Reservation(
            room_numbers=["102"], guest_ids=[], room_rates={},
            check_in=today, check_out=today + timedelta(days=3),
            status=ReservationStatus.PENDING
        ))
        db_session.query(Room).filter(Room.room_number == "201").update({Room.status: RoomStatus.DIRTY})
        db_session.commit()

    def test_board_counts(self, db_session, sample_rooms, today):
        self._seed(db_session, today)
        board = RoomService(db_session).get_status_board(today)

        assert board["stats"] == {"available": 0, "occupied": 1, "dirty": 1, "reserved": 1, "off": 0}
        statuses = {r["room_number"]: r["status"] for r in board["rooms"]}
        assert statuses == {"101": RoomStatus.OCCUPIED, "102": RoomStatus.RESERVED, "201": RoomStatus.DIRTY}

    def test_filter_does_not_change_counts(self, db_session, sample_rooms, today):
        self._seed(db_session, today)
        board = RoomService(db_session).get_status_board(today, status=RoomStatus.RESERVED)

        assert [r["room_number"] for r in board["rooms"]] == ["102"]
        assert board["stats"]["occupied"] == 1

    def test_future_date_view(self, db_session, sample_rooms, today):
        self._seed(db_session, today)
        board = RoomService(db_session).get_status_board(today + timedelta(days=2))
        statuses = {r["room_number"]: r["status"] for r in board["rooms"]}
        assert statuses["101"] == RoomStatus.AVAILABLE
        assert statuses["102"] == RoomStatus.RESERVED

    def test_recent_activity_limited_to_15(self, db_session, sample_rooms):
        for i in range(20):
            db_session.add(Transaction(room_number="101", guest_name=f"G{i}",
                                       type=TransactionType.LAUNDRY, amount=Decimal("100")))
        db_session.commit()

        board = RoomService(db_session).get_status_board()
        assert len(board["recent_transactions"]) == 15

    def test_active_reservation_for_room(self, db_session, sample_rooms, today):
        self._seed(db_session, today)
        service = RoomService(db_session)
        assert service.get_active_reservation_for_room("102").status == ReservationStatus.PENDING
        assert service.get_active_reservation_for_room("201") is None
