"""
业务对象定义
房间、客人、预订、流水、用户、员工、工资发放、营业日
预订通过房间号和客人 ID 的值列表关联房间与客人，不建立外键约束
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, String, Integer, DateTime, Date, Text, JSON,
    Enum as SQLEnum, Boolean, Numeric
)
from frontdesk.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ============== 枚举定义 ==============

class Role(str, Enum):
    """用户角色"""
    ADMIN = "ADMIN"                # 管理员
    FRONT_DESK = "FRONT_DESK"      # 前台
    ACCOUNTANT = "ACCOUNTANT"      # 会计


class RoomStatus(str, Enum):
    """房间状态"""
    AVAILABLE = "AVAILABLE"        # 空闲
    OCCUPIED = "OCCUPIED"          # 入住中
    DIRTY = "DIRTY"                # 待清洁
    RESERVED = "RESERVED"          # 已预订
    OUT_OF_ORDER = "OUT_OF_ORDER"  # 停用/维修


class RoomCategory(str, Enum):
    """房间类别"""
    FOUNTAIN_DELUXE = "Fountain Deluxe"
    PREMIUM_DELUXE = "Premium Deluxe"
    SUPERIOR_DELUXE = "Superior Deluxe"
    TWIN_DELUXE = "Twin Deluxe"
    ROYAL_SUITE = "Royal Suite"


class PaymentMethod(str, Enum):
    """支付方式"""
    CASH = "Cash"
    BKASH = "Bkash"
    NAGAD = "Nagad"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"


class IdType(str, Enum):
    """证件类型"""
    NID = "NID"
    PASSPORT = "Passport"
    BIRTH_CERTIFICATE = "Birth Certificate"
    DRIVING_LICENSE = "Driving License"


class ReservationStatus(str, Enum):
    """预订状态"""
    PENDING = "PENDING"            # 已预订未入住
    CHECKED_IN = "CHECKED_IN"      # 在住
    CHECKED_OUT = "CHECKED_OUT"    # 已退房
    CANCELLED = "CANCELLED"        # 已取消


class StayType(str, Enum):
    """登记类型"""
    RESERVATION = "RESERVATION"    # 预订
    CHECK_IN = "CHECK_IN"          # 直接入住


class TransactionType(str, Enum):
    """流水类型"""
    LAUNDRY = "Laundry"
    MINI_BAR = "Mini-bar"
    ROOM_PAYMENT = "Room Payment"


class SalaryStatus(str, Enum):
    """工资发放状态"""
    PAID = "PAID"
    PENDING = "PENDING"


# ============== 业务对象 ==============

class Room(Base):
    """
    房间对象
    status 为物理状态，看板展示的有效状态由预订叠加计算
    """
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=_uuid)
    room_number = Column(String(10), unique=True, nullable=False, index=True)
    category = Column(SQLEnum(RoomCategory), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(SQLEnum(RoomStatus), default=RoomStatus.AVAILABLE, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Guest(Base):
    """
    客人对象 - 客人台账
    id_image_url 保存证件照片（data URL），入住时必须上传
    """
    __tablename__ = "guests"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(100), default="")
    phone = Column(String(30), default="")
    id_type = Column(SQLEnum(IdType), default=IdType.NID)
    id_number = Column(String(50), default="", index=True)
    address = Column(Text, default="")
    city = Column(String(100), default="")
    country = Column(String(100), default="")
    preferences = Column(Text)
    id_image_url = Column(Text)
    outstanding_balance = Column(Numeric(10, 2), default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Reservation(Base):
    """
    预订对象 - 覆盖一段日期、一个或多个房间与客人
    room_numbers: 房间号列表；guest_ids: 客人 ID 列表（首位为主客人）
    room_rates: 房间号 -> 自定义房价，缺省使用房间牌价
    """
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=_uuid)
    room_numbers = Column(JSON, default=list, nullable=False)
    guest_ids = Column(JSON, default=list, nullable=False)
    room_rates = Column(JSON, default=dict, nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    status = Column(SQLEnum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)
    stay_type = Column(SQLEnum(StayType), default=StayType.RESERVATION)
    laundry = Column(Numeric(10, 2), default=0)
    mini_bar = Column(Numeric(10, 2), default=0)
    discount = Column(Numeric(10, 2), default=0)
    extra_charges = Column(Numeric(10, 2), default=0)
    paid_amount = Column(Numeric(10, 2), default=0)
    payment_method = Column(SQLEnum(PaymentMethod))
    on_duty_officer = Column(String(100))
    special_requests = Column(Text)
    notes = Column(Text)
    total_amount = Column(Numeric(10, 2), default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        """是否仍占用房间（未取消且未退房）"""
        return self.status not in (ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT)


class Transaction(Base):
    """
    收支流水
    room_number 为 MASTER 表示客人台账欠款回收
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    room_number = Column(String(100), nullable=False)
    guest_name = Column(String(100), nullable=False)
    type = Column(SQLEnum(TransactionType), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)


class User(Base):
    """系统用户"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(SQLEnum(Role), nullable=False, default=Role.FRONT_DESK)
    created_at = Column(DateTime, default=datetime.utcnow)


class Staff(Base):
    """员工档案（工资用）"""
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    designation = Column(String(100), nullable=False)
    joining_date = Column(Date)
    base_salary = Column(Numeric(10, 2), default=0)
    bonus = Column(Numeric(10, 2), default=0)
    deductions = Column(Numeric(10, 2), default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def net_salary(self) -> Decimal:
        """应发工资 = 基本工资 + 奖金 - 扣款"""
        return (
            Decimal(self.base_salary or 0)
            + Decimal(self.bonus or 0)
            - Decimal(self.deductions or 0)
        )


class SalaryPayment(Base):
    """工资发放记录"""
    __tablename__ = "salary_payments"

    id = Column(String(36), primary_key=True, default=_uuid)
    staff_id = Column(String(36), nullable=False, index=True)
    month = Column(String(20), nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(SQLEnum(SalaryStatus), default=SalaryStatus.PENDING, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)


class FiscalDay(Base):
    """
    营业日
    记录当日调整款（token）和日结状态
    """
    __tablename__ = "fiscal_days"

    id = Column(String(36), primary_key=True, default=_uuid)
    business_date = Column(Date, unique=True, nullable=False)
    token_adjustment = Column(Numeric(10, 2), default=0)
    is_closed = Column(Boolean, default=False)
    closed_at = Column(DateTime)
    closed_by = Column(String(36))
