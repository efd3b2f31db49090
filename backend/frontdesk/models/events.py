"""
数据变更事件定义
每次写库都会发布对应表的变更事件，供实时推送订阅
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, Dict, Any


class EventType(str, Enum):
    """事件类型枚举（按表划分）"""
    ROOMS_CHANGED = "rooms.changed"
    GUESTS_CHANGED = "guests.changed"
    RESERVATIONS_CHANGED = "reservations.changed"
    TRANSACTIONS_CHANGED = "transactions.changed"
    USERS_CHANGED = "users.changed"
    STAFF_CHANGED = "staff.changed"
    SALARY_PAYMENTS_CHANGED = "salary_payments.changed"
    FISCAL_DAYS_CHANGED = "fiscal_days.changed"


class ChangeKind(str, Enum):
    """变更类型"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# 表名 -> 事件类型
TABLE_EVENTS: Dict[str, EventType] = {
    "rooms": EventType.ROOMS_CHANGED,
    "guests": EventType.GUESTS_CHANGED,
    "reservations": EventType.RESERVATIONS_CHANGED,
    "transactions": EventType.TRANSACTIONS_CHANGED,
    "users": EventType.USERS_CHANGED,
    "staff": EventType.STAFF_CHANGED,
    "salary_payments": EventType.SALARY_PAYMENTS_CHANGED,
    "fiscal_days": EventType.FISCAL_DAYS_CHANGED,
}

# 不对外推送的敏感字段
_HIDDEN_COLUMNS = {"password_hash"}


def _json_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def row_to_dict(obj) -> Optional[Dict[str, Any]]:
    """将 ORM 对象转换为可 JSON 序列化的字典"""
    if obj is None:
        return None
    return {
        column.name: _json_value(getattr(obj, column.name))
        for column in obj.__table__.columns
        if column.name not in _HIDDEN_COLUMNS
    }


@dataclass
class ChangeEventData:
    """变更事件数据"""
    table: str = ""
    change: str = ChangeKind.UPDATE.value
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        result["timestamp"] = self.timestamp.isoformat()
        return result
