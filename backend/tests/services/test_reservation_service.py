"""
预订服务测试 - 创建、入住、收款、退房、删除、搜索
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from frontdesk.models.ontology import (
    Room, RoomStatus, ReservationStatus, StayType, Transaction, TransactionType, PaymentMethod,
    Guest
)
from frontdesk.models.schemas import ReservationCreate, ReservationUpdate
from frontdesk.services.reservation_service import ReservationService


def _room_status(db_session, number):
    db_session.expire_all()
    return db_session.query(Room).filter(Room.room_number == number).one().status


@pytest.fixture
def service(db_session, publisher):
    return ReservationService(db_session, publisher)


@pytest.fixture
def make_data(today, sample_rooms, sample_guest):
    def _make(**kwargs):
        defaults = dict(
            room_numbers=["101"], guest_ids=[sample_guest.id],
            check_in=today, check_out=today + timedelta(days=2)
        )
        defaults.update(kwargs)
        return ReservationCreate(**defaults)
    return _make


class TestCreateReservation:

    def test_reservation_marks_rooms_reserved(self, db_session, service, make_data, events):
        res = service.create_reservation(make_data(room_numbers=["101", "102"]))

        assert res.status == ReservationStatus.PENDING
        assert res.total_amount == Decimal("24000")
        assert _room_status(db_session, "101") == RoomStatus.RESERVED
        assert _room_status(db_session, "102") == RoomStatus.RESERVED
        assert "reservations.changed" in [e.event_type for e in events]

    def test_direct_check_in_marks_rooms_occupied(self, db_session, service, make_data):
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        assert res.status == ReservationStatus.CHECKED_IN
        assert _room_status(db_session, "101") == RoomStatus.OCCUPIED

    def test_new_collection_logged(self, db_session, service, make_data):
        res = service.create_reservation(make_data(
            new_collection=Decimal("3000"), payment_method=PaymentMethod.CARD
        ))
        assert res.paid_amount == Decimal("3000")

        tx = db_session.query(Transaction).one()
        assert tx.type == TransactionType.ROOM_PAYMENT
        assert tx.room_number == "101"
        assert tx.guest_name == "Rahim Uddin"

    def test_custom_rates_stored(self, service, make_data):
        res = service.create_reservation(make_data(room_rates={"101": Decimal("4000")}))
        assert res.room_rates == {"101": "4000"}
        assert res.total_amount == Decimal("8000")

    def test_requires_guest(self, service, make_data):
        with pytest.raises(ValueError, match="客人"):
            service.create_reservation(make_data(guest_ids=[]))

    def test_requires_room(self, service, make_data):
        with pytest.raises(ValueError, match="房间"):
            service.create_reservation(make_data(room_numbers=[]))

    def test_unknown_room(self, service, make_data):
        with pytest.raises(ValueError, match="999"):
            service.create_reservation(make_data(room_numbers=["999"]))

    def test_unknown_guest(self, service, make_data):
        with pytest.raises(ValueError, match="不存在"):
            service.create_reservation(make_data(guest_ids=["ghost"]))

    def test_check_out_before_check_in(self, service, make_data, today):
        with pytest.raises(ValueError, match="离店日期"):
            service.create_reservation(make_data(check_out=today - timedelta(days=1)))

    def test_check_in_requires_id_image(self, service, make_data, sample_guest, guest_without_id):
        with pytest.raises(ValueError, match="证件照片"):
            service.create_reservation(make_data(
                guest_ids=[sample_guest.id, guest_without_id.id], stay_type=StayType.CHECK_IN
            ))

    def test_reservation_allowed_without_id_image(self, service, make_data, guest_without_id):
        res = service.create_reservation(make_data(guest_ids=[guest_without_id.id]))
        assert res.status == ReservationStatus.PENDING


class TestStayWorkflow:

    def test_quick_check_in(self, db_session, service, make_data):
        res = service.create_reservation(make_data())
        res = service.quick_check_in(res.id)

        assert res.status == ReservationStatus.CHECKED_IN
        assert res.stay_type == StayType.CHECK_IN
        assert _room_status(db_session, "101") == RoomStatus.OCCUPIED

    def test_quick_check_in_requires_id_image(self, service, make_data, guest_without_id):
        res = service.create_reservation(make_data(guest_ids=[guest_without_id.id]))
        with pytest.raises(ValueError, match="证件照片"):
            service.quick_check_in(res.id)

    def test_quick_check_in_only_pending(self, service, make_data):
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        with pytest.raises(ValueError):
            service.quick_check_in(res.id)

    def test_collect_payment(self, db_session, service, make_data):
        res = service.create_reservation(make_data(room_numbers=["101", "102"]))
        res = service.collect_payment(res.id, Decimal("2500"), PaymentMethod.NAGAD)

        assert res.paid_amount == Decimal("2500")
        assert res.payment_method == PaymentMethod.NAGAD
        assert db_session.query(Transaction).one().room_number == "101, 102"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_collect_payment_must_be_positive(self, service, make_data, amount):
        res = service.create_reservation(make_data())
        with pytest.raises(ValueError, match="大于 0"):
            service.collect_payment(res.id, amount)

    def test_check_out_moves_due_to_guest(self, db_session, service, make_data, sample_guest):
        res = service.create_reservation(make_data(
            stay_type=StayType.CHECK_IN, new_collection=Decimal("4000")
        ))
        res = service.check_out(res.id, Decimal("1000"))

        assert res.status == ReservationStatus.CHECKED_OUT
        assert res.paid_amount == Decimal("5000")
        assert _room_status(db_session, "101") == RoomStatus.DIRTY

        guest = db_session.query(Guest).filter(Guest.id == sample_guest.id).one()
        assert guest.outstanding_balance == Decimal("5000")
        assert db_session.query(Transaction).count() == 2

    def test_check_out_fully_paid(self, db_session, service, make_data, sample_guest):
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        service.check_out(res.id, Decimal("10000"))

        guest = db_session.query(Guest).filter(Guest.id == sample_guest.id).one()
        assert guest.outstanding_balance == Decimal("0")

    def test_payment_without_guest_logged_as_walk_in(self, db_session, service, make_data, sample_guest):
        """主客人已删除时，流水记为 Walk-in Guest"""
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        db_session.delete(sample_guest)
        db_session.commit()

        service.collect_payment(res.id, Decimal("1000"))
        service.check_out(res.id, Decimal("500"))

        names = [tx.guest_name for tx in db_session.query(Transaction).all()]
        assert names == ["Walk-in Guest", "Walk-in Guest"]

    def test_check_out_twice_rejected(self, service, make_data):
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        service.check_out(res.id, Decimal("10000"))
        with pytest.raises(ValueError):
            service.check_out(res.id)

    def test_delete_frees_rooms(self, db_session, service, make_data, events):
        res = service.create_reservation(make_data())
        service.delete_reservation(res.id)

        assert service.get_reservation(res.id) is None
        assert _room_status(db_session, "101") == RoomStatus.AVAILABLE
        assert events[-1].data["change"] == "DELETE"


class TestUpdateReservation:

    def test_update_changes_rooms(self, db_session, service, make_data):
        res = service.create_reservation(make_data())
        res = service.update_reservation(res.id, ReservationUpdate(**make_data(
            room_numbers=["102"], stay_type=StayType.CHECK_IN
        ).model_dump()))

        assert res.room_numbers == ["102"]
        assert res.status == ReservationStatus.CHECKED_IN
        assert _room_status(db_session, "101") == RoomStatus.AVAILABLE
        assert _room_status(db_session, "102") == RoomStatus.OCCUPIED

    def test_update_checked_out_rejected(self, service, make_data):
        res = service.create_reservation(make_data(stay_type=StayType.CHECK_IN))
        service.check_out(res.id, Decimal("10000"))
        with pytest.raises(ValueError, match="无法修改"):
            service.update_reservation(res.id, ReservationUpdate(**make_data().model_dump()))


class TestSearchReservations:

    @pytest.fixture
    def seeded(self, service, make_data, today):
        pending = service.create_reservation(make_data())
        stay = service.create_reservation(make_data(
            room_numbers=["201"], stay_type=StayType.CHECK_IN,
            check_in=today + timedelta(days=5), check_out=today + timedelta(days=6)
        ))
        return pending, stay

    def test_status_filters(self, service, seeded):
        pending, stay = seeded
        assert [r.id for r in service.search_reservations(status_filter="Reserved")] == [pending.id]
        assert [r.id for r in service.search_reservations(status_filter="Check-In")] == [stay.id]
        assert len(service.search_reservations()) == 2

    def test_invalid_filter(self, service):
        with pytest.raises(ValueError):
            service.search_reservations(status_filter="Everything")

    def test_query_matches_room_guest_and_id(self, service, seeded):
        pending, stay = seeded
        assert stay.id in [r.id for r in service.search_reservations("201")]
        assert len(service.search_reservations("RAHIM")) == 2
        assert [r.id for r in service.search_reservations(pending.id[:6])] == [pending.id]

    def test_date_matches_check_in_or_out(self, service, seeded, today):
        pending, stay = seeded
        assert [r.id for r in service.search_reservations(on_date=today + timedelta(days=2))] == [pending.id]
        assert [r.id for r in service.search_reservations(on_date=today + timedelta(days=5))] == [stay.id]
