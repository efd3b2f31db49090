"""
客人台账服务
客人维护、证件照片、欠款回收、批量导入
"""
import re
from typing import List, Optional, Callable
from decimal import Decimal
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session
from frontdesk.models.ontology import Guest, IdType, PaymentMethod, TransactionType
from frontdesk.models.schemas import GuestCreate, GuestUpdate
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change
from frontdesk.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)

MASTER_ACCOUNT = "MASTER"
DEFAULT_CITY = "Dhaka"
DEFAULT_COUNTRY = "Bangladesh"
IMPORT_MIN_FIELDS = 5

# 制表符、逗号或两个以上空格
_IMPORT_SPLIT = re.compile(r"\t|,|\s{2,}")


def parse_id_type(value: str) -> IdType:
    """解析证件类型，无法识别时按 NID 处理"""
    value = (value or "").strip()
    for id_type in IdType:
        if value.lower() in (id_type.value.lower(), id_type.name.lower()):
            return id_type
    return IdType.NID


def parse_import_line(line: str) -> Optional[dict]:
    """
    解析批量导入的一行
    字段顺序：名 姓 邮箱 电话 证件类型 证件号 城市 国家
    字段不足 5 个返回 None
    """
    parts = [p.strip() for p in _IMPORT_SPLIT.split(line.strip())]
    if len(parts) < IMPORT_MIN_FIELDS:
        return None

    def part(i: int, default: str = "") -> str:
        return parts[i] if len(parts) > i and parts[i] else default

    name = f"{part(0)} {part(1)}".strip()
    return {
        'name': name or part(0),
        'email': part(2),
        'phone': part(3),
        'id_type': parse_id_type(part(4)),
        'id_number': part(5),
        'address': part(6, DEFAULT_CITY),
        'city': part(6, DEFAULT_CITY),
        'country': part(7, DEFAULT_COUNTRY),
    }


class GuestService:
    """客人台账服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def get_guests(self, q: Optional[str] = None, outstanding_only: bool = False) -> List[Guest]:
        """
        客人列表（按姓名排序）

        Args:
            q: 匹配姓名（不区分大小写）、电话或证件号
            outstanding_only: 仅显示有欠款的客人
        """
        query = self.db.query(Guest)
        if q:
            s = q.strip()
            query = query.filter(or_(
                Guest.name.icontains(s, autoescape=True),
                Guest.phone.contains(s, autoescape=True),
                Guest.id_number.icontains(s, autoescape=True),
            ))
        if outstanding_only:
            query = query.filter(Guest.outstanding_balance > 0)
        return query.order_by(Guest.name).all()

    def get_guest(self, guest_id: str) -> Optional[Guest]:
        return self.db.query(Guest).filter(Guest.id == guest_id).first()

    def _require(self, guest_id: str) -> Guest:
        guest = self.get_guest(guest_id)
        if not guest:
            raise LookupError("客人不存在")
        return guest

    def create_guest(self, data: GuestCreate) -> Guest:
        """新增客人"""
        guest = Guest(**data.model_dump(), outstanding_balance=Decimal("0"))
        self.db.add(guest)
        self.db.commit()
        self.db.refresh(guest)

        publish_change(self._publish_event, "guests", ChangeKind.INSERT,
                       new=row_to_dict(guest), source="guest_service")
        return guest

    def update_guest(self, guest_id: str, data: GuestUpdate) -> Guest:
        """更新客人信息"""
        guest = self._require(guest_id)
        old = row_to_dict(guest)

        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(guest, key, value)

        self.db.commit()
        self.db.refresh(guest)

        publish_change(self._publish_event, "guests", ChangeKind.UPDATE,
                       new=row_to_dict(guest), old=old, source="guest_service")
        return guest

    def delete_guest(self, guest_id: str) -> None:
        """删除客人"""
        guest = self._require(guest_id)
        old = row_to_dict(guest)
        self.db.delete(guest)
        self.db.commit()

        logger.info(f"Guest {guest_id} deleted")
        publish_change(self._publish_event, "guests", ChangeKind.DELETE,
                       old=old, source="guest_service")

    def upload_id_image(self, guest_id: str, image_data: str) -> Guest:
        """保存证件照片（data URL）"""
        if not image_data or not image_data.startswith("data:image/"):
            raise ValueError("证件照片必须为图片 data URL")

        guest = self._require(guest_id)
        old = row_to_dict(guest)
        guest.id_image_url = image_data
        self.db.commit()
        self.db.refresh(guest)

        publish_change(self._publish_event, "guests", ChangeKind.UPDATE,
                       new=row_to_dict(guest), old=old, source="guest_service")
        return guest

    def add_outstanding(self, guest: Guest, amount: Decimal) -> None:
        """累加欠款（退房未结清时调用），由调用方提交"""
        old = row_to_dict(guest)
        guest.outstanding_balance = Decimal(guest.outstanding_balance or 0) + Decimal(amount)
        self.db.flush()
        publish_change(self._publish_event, "guests", ChangeKind.UPDATE,
                       new=row_to_dict(guest), old=old, source="guest_service")

    def collect_outstanding(self, guest_id: str, amount: Decimal,
                            method: PaymentMethod = PaymentMethod.CASH,
                            allow_overpayment: bool = False) -> Guest:
        """
        回收客人欠款
        金额超过欠款需显式允许；流水记在 MASTER 账户下
        """
        amount = Decimal(amount or 0)
        if amount <= 0:
            raise ValueError("收款金额必须大于 0")

        guest = self._require(guest_id)
        balance = Decimal(guest.outstanding_balance or 0)
        if amount > balance and not allow_overpayment:
            raise ValueError(f"收款金额 {amount} 超过欠款 {balance}")

        TransactionService(self.db, self._publish_event).add_transaction(
            MASTER_ACCOUNT, guest.name, TransactionType.ROOM_PAYMENT, amount
        )

        old = row_to_dict(guest)
        guest.outstanding_balance = max(Decimal("0"), balance - amount)
        self.db.commit()
        self.db.refresh(guest)

        logger.info(f"Collected {amount} ({method.value}) from guest {guest.name}")
        publish_change(self._publish_event, "guests", ChangeKind.UPDATE,
                       new=row_to_dict(guest), old=old, source="guest_service")
        return guest

    def bulk_import(self, text: str) -> dict:
        """
        批量导入客人
        证件号已存在（包括同批次前面的行）则跳过
        """
        existing = {
            number for (number,) in self.db.query(Guest.id_number).all() if number
        }
        imported = 0
        skipped = 0
        created = []

        for line in (text or "").splitlines():
            if not line.strip():
                continue
            record = parse_import_line(line)
            if record is None:
                skipped += 1
                continue
            if record['id_number'] and record['id_number'] in existing:
                skipped += 1
                continue

            guest = Guest(**record, outstanding_balance=Decimal("0"))
            self.db.add(guest)
            created.append(guest)
            if record['id_number']:
                existing.add(record['id_number'])
            imported += 1

        self.db.commit()
        for guest in created:
            publish_change(self._publish_event, "guests", ChangeKind.INSERT,
                           new=row_to_dict(guest), source="guest_service")

        logger.info(f"Guest import: {imported} imported, {skipped} skipped")
        return {'imported': imported, 'skipped': skipped}

    def export(self) -> List[dict]:
        """导出全部客人台账"""
        return [row_to_dict(g) for g in self.get_guests()]
