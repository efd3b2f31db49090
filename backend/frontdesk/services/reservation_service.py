"""
预订服务 - 预订、入住、收款、退房
预订以房间号列表和客人 ID 列表关联房间与客人
状态变化同步更新房间物理状态，并记录收款流水
"""
from typing import List, Optional, Callable
from datetime import date
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from frontdesk.models.ontology import (
    Reservation, ReservationStatus, StayType, Guest, Room, RoomStatus,
    PaymentMethod, TransactionType
)
from frontdesk.models.schemas import ReservationCreate, ReservationUpdate
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change
from frontdesk.services.billing_service import BillingService, calculate_bill, WALK_IN_GUEST
from frontdesk.services.room_service import RoomService
from frontdesk.services.guest_service import GuestService
from frontdesk.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

# 列表筛选项 -> 预订状态
STATUS_FILTERS = {
    'All': None,
    'Reserved': ReservationStatus.PENDING,
    'Check-In': ReservationStatus.CHECKED_IN,
    'Checked-Out': ReservationStatus.CHECKED_OUT,
}


def status_for_stay_type(stay_type: StayType) -> ReservationStatus:
    return ReservationStatus.CHECKED_IN if stay_type == StayType.CHECK_IN else ReservationStatus.PENDING


def room_status_for(status: ReservationStatus) -> RoomStatus:
    return RoomStatus.OCCUPIED if status == ReservationStatus.CHECKED_IN else RoomStatus.RESERVED


class ReservationService:
    """预订服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.room_service = RoomService(db, self._publish_event)
        self.guest_service = GuestService(db, self._publish_event)
        self.transaction_service = TransactionService(db, self._publish_event)
        self.billing = BillingService(db)

    # ============== 查询 ==============

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(Reservation.id == reservation_id).first()

    def _require(self, reservation_id: str) -> Reservation:
        res = self.get_reservation(reservation_id)
        if not res:
            raise LookupError("预订不存在")
        return res

    def primary_guest_name(self, reservation: Reservation) -> Optional[str]:
        guest = self.billing.primary_guest(reservation)
        return guest.name if guest else None

    def to_response(self, reservation: Reservation) -> dict:
        """预订及其主客人、未结金额"""
        bill = self.billing.get_bill(reservation)
        data = {c.name: getattr(reservation, c.name) for c in Reservation.__table__.columns}
        data['primary_guest_name'] = self.primary_guest_name(reservation)
        data['due_amount'] = bill.due
        return data

    def search_reservations(self, q: Optional[str] = None, on_date: Optional[date] = None,
                            status_filter: str = 'All',
                            include_cancelled: bool = False) -> List[Reservation]:
        """
        预订列表

        Args:
            q: 匹配房间号、主客人姓名（不区分大小写）或预订 ID
            on_date: 匹配入住日或离店日
            status_filter: All / Reserved / Check-In / Checked-Out
            include_cancelled: 默认不显示已取消预订
        """
        if status_filter not in STATUS_FILTERS:
            raise ValueError(f"无效的筛选条件: {status_filter}")

        query = self.db.query(Reservation)
        status = STATUS_FILTERS[status_filter]
        if status is not None:
            query = query.filter(Reservation.status == status)
        elif not include_cancelled:
            query = query.filter(Reservation.status != ReservationStatus.CANCELLED)
        if on_date is not None:
            query = query.filter(
                (Reservation.check_in == on_date) | (Reservation.check_out == on_date)
            )
        reservations = query.order_by(Reservation.check_in.desc()).all()

        s = (q or "").strip().lower()
        if not s:
            return reservations

        result = []
        for res in reservations:
            guest_name = (self.primary_guest_name(res) or "").lower()
            if (
                any(s in number.lower() for number in res.room_numbers or [])
                or s in guest_name
                or s in res.id.lower()
            ):
                result.append(res)
        return result

    # ============== 校验 ==============

    def _validate(self, data: ReservationCreate) -> List[Guest]:
        if not data.guest_ids:
            raise ValueError("至少需要选择一位客人")
        if not data.room_numbers:
            raise ValueError("至少需要选择一个房间")
        if data.check_out < data.check_in:
            raise ValueError("离店日期不能早于入住日期")

        for number in data.room_numbers:
            if not self.room_service.get_room_by_number(number):
                raise ValueError(f"房间 {number} 不存在")
        for room_number in data.room_rates:
            if room_number not in data.room_numbers:
                raise ValueError(f"房间 {room_number} 不在本次预订中")

        guests = []
        for guest_id in data.guest_ids:
            guest = self.guest_service.get_guest(guest_id)
            if not guest:
                raise ValueError(f"客人 {guest_id} 不存在")
            guests.append(guest)

        if data.stay_type == StayType.CHECK_IN:
            self._require_id_images(guests)
        return guests

    @staticmethod
    def _require_id_images(guests: List[Guest]) -> None:
        missing = [g.name for g in guests if not g.id_image_url]
        if missing:
            raise ValueError(f"入住前需上传证件照片: {', '.join(missing)}")

    def _apply(self, res: Reservation, data: ReservationCreate) -> None:
        res.room_numbers = list(data.room_numbers)
        res.guest_ids = list(data.guest_ids)
        res.room_rates = {k: str(v) for k, v in data.room_rates.items()}
        res.check_in = data.check_in
        res.check_out = data.check_out
        res.stay_type = data.stay_type
        res.status = status_for_stay_type(data.stay_type)
        res.laundry = data.laundry
        res.mini_bar = data.mini_bar
        res.discount = data.discount
        res.extra_charges = data.extra_charges
        res.payment_method = data.payment_method
        res.on_duty_officer = data.on_duty_officer
        res.special_requests = data.special_requests
        res.notes = data.notes

    def _refresh_total(self, res: Reservation) -> None:
        res.total_amount = calculate_bill(res, self.billing.room_prices()).grand_total

    def _collect(self, res: Reservation, amount: Decimal, method: PaymentMethod) -> None:
        """记录收款流水并累加已付金额（不提交）"""
        self.transaction_service.add_transaction(
            ", ".join(res.room_numbers or []),
            self.primary_guest_name(res) or WALK_IN_GUEST,
            TransactionType.ROOM_PAYMENT,
            amount
        )
        res.paid_amount = Decimal(res.paid_amount or 0) + Decimal(amount)
        res.payment_method = method

    # ============== 写操作 ==============

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        """
        创建预订或直接入住
        直接入住 -> CHECKED_IN，房间置为 OCCUPIED；否则 PENDING，房间置为 RESERVED
        """
        self._validate(data)

        res = Reservation(paid_amount=Decimal("0"))
        self._apply(res, data)
        self._refresh_total(res)
        self.db.add(res)
        self.db.flush()

        if data.new_collection and data.new_collection > 0:
            self._collect(res, data.new_collection, data.payment_method)

        self.db.commit()
        self.db.refresh(res)

        self.room_service.set_rooms_status(res.room_numbers, room_status_for(res.status))

        logger.info(f"Reservation {res.id} created ({res.status.value}) for rooms {res.room_numbers}")
        publish_change(self._publish_event, "reservations", ChangeKind.INSERT,
                       new=row_to_dict(res), source="reservation_service")
        return res

    def update_reservation(self, reservation_id: str, data: ReservationUpdate) -> Reservation:
        """编辑在册预订，移出的房间恢复为空闲"""
        res = self._require(reservation_id)
        if not res.is_active:
            raise ValueError(f"预订状态为 {res.status.value}，无法修改")

        self._validate(data)
        old = row_to_dict(res)
        released = [n for n in res.room_numbers or [] if n not in data.room_numbers]

        self._apply(res, data)
        self._refresh_total(res)
        if data.new_collection and data.new_collection > 0:
            self._collect(res, data.new_collection, data.payment_method)

        self.db.commit()
        self.db.refresh(res)

        self.room_service.set_rooms_status(released, RoomStatus.AVAILABLE)
        self.room_service.set_rooms_status(res.room_numbers, room_status_for(res.status))

        publish_change(self._publish_event, "reservations", ChangeKind.UPDATE,
                       new=row_to_dict(res), old=old, source="reservation_service")
        return res

    def quick_check_in(self, reservation_id: str) -> Reservation:
        """待入住预订快速办理入住"""
        res = self._require(reservation_id)
        if res.status != ReservationStatus.PENDING:
            raise ValueError(f"预订状态为 {res.status.value}，无法办理入住")

        guests = [g for g in (self.guest_service.get_guest(i) for i in res.guest_ids or []) if g]
        self._require_id_images(guests)

        old = row_to_dict(res)
        res.status = ReservationStatus.CHECKED_IN
        res.stay_type = StayType.CHECK_IN
        self.db.commit()
        self.db.refresh(res)

        self.room_service.set_rooms_status(res.room_numbers, RoomStatus.OCCUPIED)

        logger.info(f"Reservation {res.id} checked in")
        publish_change(self._publish_event, "reservations", ChangeKind.UPDATE,
                       new=row_to_dict(res), old=old, source="reservation_service")
        return res

    def collect_payment(self, reservation_id: str, amount: Decimal,
                        method: PaymentMethod = PaymentMethod.CASH) -> Reservation:
        """收款"""
        amount = Decimal(amount or 0)
        if amount <= 0:
            raise ValueError("收款金额必须大于 0")

        res = self._require(reservation_id)
        old = row_to_dict(res)
        self._collect(res, amount, method)
        self.db.commit()
        self.db.refresh(res)

        publish_change(self._publish_event, "reservations", ChangeKind.UPDATE,
                       new=row_to_dict(res), old=old, source="reservation_service")
        return res

    def check_out(self, reservation_id: str, final_payment: Decimal = Decimal("0")) -> Reservation:
        """
        退房
        1. 记录最终收款
        2. 未结金额计入主客人欠款
        3. 房间置为待清洁
        """
        res = self._require(reservation_id)
        if res.status in (ReservationStatus.CHECKED_OUT, ReservationStatus.CANCELLED):
            raise ValueError(f"预订状态为 {res.status.value}，无法退房")

        final_payment = Decimal(final_payment or 0)
        if final_payment < 0:
            raise ValueError("收款金额不能为负数")

        old = row_to_dict(res)
        bill = calculate_bill(res, self.billing.room_prices(), extra_paid=final_payment)

        if final_payment > 0:
            self.transaction_service.add_transaction(
                ", ".join(res.room_numbers or []),
                self.primary_guest_name(res) or WALK_IN_GUEST,
                TransactionType.ROOM_PAYMENT,
                final_payment
            )

        if bill.due > 0:
            guest = self.billing.primary_guest(res)
            if guest:
                self.guest_service.add_outstanding(guest, bill.due)
                logger.info(f"Due {bill.due} moved to guest {guest.name} ledger")

        res.paid_amount = Decimal(res.paid_amount or 0) + final_payment
        res.status = ReservationStatus.CHECKED_OUT
        res.total_amount = bill.grand_total
        self.db.commit()
        self.db.refresh(res)

        self.room_service.set_rooms_status(res.room_numbers, RoomStatus.DIRTY)

        logger.info(f"Reservation {res.id} checked out")
        publish_change(self._publish_event, "reservations", ChangeKind.UPDATE,
                       new=row_to_dict(res), old=old, source="reservation_service")
        return res

    def delete_reservation(self, reservation_id: str) -> None:
        """删除预订，房间恢复为空闲"""
        res = self._require(reservation_id)
        old = row_to_dict(res)

        self.room_service.set_rooms_status(res.room_numbers or [], RoomStatus.AVAILABLE)
        self.db.delete(res)
        self.db.commit()

        logger.info(f"Reservation {reservation_id} deleted")
        publish_change(self._publish_event, "reservations", ChangeKind.DELETE,
                       old=old, source="reservation_service")
