"""
房间服务 - 房态看板
物理状态保存在 Room.status；看板展示的有效状态由当日预订叠加计算
房间状态变更时发布 rooms 变更事件
"""
from typing import List, Optional, Callable, Iterable
from datetime import date
import logging
from sqlalchemy.orm import Session
from frontdesk.models.ontology import (
    Room, RoomStatus, RoomCategory, Reservation, ReservationStatus
)
from frontdesk.models.schemas import RoomCreate, RoomUpdate
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change
from frontdesk.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 15

# 看板统计键 -> 有效状态
STAT_KEYS = {
    'available': RoomStatus.AVAILABLE,
    'occupied': RoomStatus.OCCUPIED,
    'dirty': RoomStatus.DIRTY,
    'reserved': RoomStatus.RESERVED,
    'off': RoomStatus.OUT_OF_ORDER,
}


def find_overlapping_reservation(room_number: str, reservations: Iterable[Reservation],
                                 view_date: date) -> Optional[Reservation]:
    """查找指定日期覆盖该房间的有效预订（入住日含，离店日不含）"""
    for res in reservations:
        if (
            room_number in (res.room_numbers or [])
            and res.is_active
            and res.check_in <= view_date < res.check_out
        ):
            return res
    return None


def effective_status(room: Room, reservations: Iterable[Reservation],
                     view_date: date) -> RoomStatus:
    """
    计算房间在指定日期的有效状态

    1. 存在覆盖当日的有效预订：在住 -> OCCUPIED，否则 -> RESERVED
    2. 无预订时回退到物理状态：仅 DIRTY / OUT_OF_ORDER 保留
       物理状态为 RESERVED/OCCUPIED 但当日无预订，视为 AVAILABLE
    """
    active = find_overlapping_reservation(room.room_number, reservations, view_date)
    if active:
        if active.status == ReservationStatus.CHECKED_IN:
            return RoomStatus.OCCUPIED
        return RoomStatus.RESERVED

    if room.status == RoomStatus.DIRTY:
        return RoomStatus.DIRTY
    if room.status == RoomStatus.OUT_OF_ORDER:
        return RoomStatus.OUT_OF_ORDER
    return RoomStatus.AVAILABLE


class RoomService:
    """房间服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish

    # ============== 房间维护 ==============

    def get_rooms(self, category: Optional[RoomCategory] = None,
                  status: Optional[RoomStatus] = None) -> List[Room]:
        """获取房间列表（按物理状态过滤）"""
        query = self.db.query(Room)
        if category is not None:
            query = query.filter(Room.category == category)
        if status is not None:
            query = query.filter(Room.status == status)
        return query.order_by(Room.room_number).all()

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        """根据房间号获取房间"""
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    def create_room(self, data: RoomCreate) -> Room:
        """创建房间"""
        if self.get_room_by_number(data.room_number):
            raise ValueError(f"房间号 '{data.room_number}' 已存在")

        room = Room(**data.model_dump())
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)

        publish_change(self._publish_event, "rooms", ChangeKind.INSERT,
                       new=row_to_dict(room), source="room_service")
        return room

    def update_room(self, room_number: str, data: RoomUpdate) -> Room:
        """更新房间类别/牌价"""
        room = self.get_room_by_number(room_number)
        if not room:
            raise LookupError("房间不存在")

        old = row_to_dict(room)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(room, key, value)

        self.db.commit()
        self.db.refresh(room)

        publish_change(self._publish_event, "rooms", ChangeKind.UPDATE,
                       new=row_to_dict(room), old=old, source="room_service")
        return room

    def update_room_status(self, room_number: str, status: RoomStatus) -> Room:
        """更新房间物理状态"""
        room = self.get_room_by_number(room_number)
        if not room:
            raise LookupError(f"房间 {room_number} 不存在")

        old_status = room.status
        if old_status == status:
            return room

        old = row_to_dict(room)
        room.status = status
        self.db.commit()
        self.db.refresh(room)

        logger.info(f"Room {room_number} status {old_status.value} -> {status.value}")
        publish_change(self._publish_event, "rooms", ChangeKind.UPDATE,
                       new=row_to_dict(room), old=old, source="room_service")
        return room

    def set_rooms_status(self, room_numbers: Iterable[str], status: RoomStatus) -> None:
        """批量更新房间状态，不存在的房间号忽略"""
        for number in room_numbers:
            if self.get_room_by_number(number):
                self.update_room_status(number, status)
            else:
                logger.warning(f"Room {number} referenced by reservation does not exist")

    # ============== 房态看板 ==============

    def _board_reservations(self) -> List[Reservation]:
        return self.db.query(Reservation).filter(
            Reservation.status.notin_([ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT])
        ).all()

    def get_effective_rooms(self, view_date: date) -> List[dict]:
        """所有房间及其在指定日期的有效状态"""
        reservations = self._board_reservations()
        result = []
        for room in self.get_rooms():
            result.append({
                'id': room.id,
                'room_number': room.room_number,
                'category': room.category,
                'price': room.price,
                'status': effective_status(room, reservations, view_date),
                'physical_status': room.status,
            })
        return result

    def get_status_board(self, view_date: Optional[date] = None,
                         category: Optional[RoomCategory] = None,
                         status: Optional[RoomStatus] = None) -> dict:
        """
        房态看板
        统计基于全部房间的有效状态；过滤只影响返回的房间列表
        """
        view_date = view_date or date.today()
        rooms = self.get_effective_rooms(view_date)

        stats = {
            key: len([r for r in rooms if r['status'] == room_status])
            for key, room_status in STAT_KEYS.items()
        }

        filtered = [
            r for r in rooms
            if (category is None or r['category'] == category)
            and (status is None or r['status'] == status)
        ]

        recent = TransactionService(self.db).list_transactions(limit=RECENT_ACTIVITY_LIMIT)

        return {
            'view_date': view_date,
            'stats': stats,
            'rooms': filtered,
            'recent_transactions': recent,
        }

    def get_active_reservation_for_room(self, room_number: str) -> Optional[Reservation]:
        """房间当前关联的预订（在住或待入住）"""
        candidates = self.db.query(Reservation).filter(
            Reservation.status.in_([ReservationStatus.CHECKED_IN, ReservationStatus.PENDING])
        ).order_by(Reservation.check_in).all()
        for res in candidates:
            if room_number in (res.room_numbers or []):
                return res
        return None
