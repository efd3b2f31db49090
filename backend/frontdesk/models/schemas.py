"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict, field_validator
from frontdesk.models.ontology import (
    Role, RoomStatus, RoomCategory, PaymentMethod, IdType,
    ReservationStatus, StayType, TransactionType, SalaryStatus
)


# ============== 房间 Schemas ==============

class RoomCreate(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=10)
    category: RoomCategory
    price: Decimal = Field(..., ge=0)
    status: RoomStatus = RoomStatus.AVAILABLE


class RoomUpdate(BaseModel):
    category: Optional[RoomCategory] = None
    price: Optional[Decimal] = Field(None, ge=0)


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    id: str
    room_number: str
    category: RoomCategory
    price: Decimal
    status: RoomStatus
    model_config = ConfigDict(from_attributes=True)


class BoardRoom(RoomResponse):
    """房态看板中的房间：status 为有效状态，physical_status 为物理状态"""
    physical_status: RoomStatus


class BoardStats(BaseModel):
    available: int = 0
    occupied: int = 0
    dirty: int = 0
    reserved: int = 0
    off: int = 0


# ============== 流水 Schemas ==============

class TransactionCreate(BaseModel):
    room_number: str = Field(..., max_length=100)
    guest_name: str = Field(..., max_length=100)
    type: TransactionType
    amount: Decimal


class TransactionResponse(BaseModel):
    id: str
    timestamp: datetime
    room_number: str
    guest_name: str
    type: TransactionType
    amount: Decimal
    model_config = ConfigDict(from_attributes=True)


class StatusBoardResponse(BaseModel):
    view_date: date
    stats: BoardStats
    rooms: List[BoardRoom]
    recent_transactions: List[TransactionResponse] = []


# ============== 客人 Schemas ==============

class GuestBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(default="", max_length=100)
    phone: str = Field(default="", max_length=30)
    id_type: IdType = IdType.NID
    id_number: str = Field(default="", max_length=50)
    address: str = ""
    city: str = ""
    country: str = ""
    preferences: Optional[str] = None


class GuestCreate(GuestBase):
    pass


class GuestUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    id_type: Optional[IdType] = None
    id_number: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    preferences: Optional[str] = None
    outstanding_balance: Optional[Decimal] = Field(None, ge=0)


class GuestResponse(GuestBase):
    id: str
    id_image_url: Optional[str] = None
    outstanding_balance: Decimal
    model_config = ConfigDict(from_attributes=True)


class IdImageUpload(BaseModel):
    image_data: str

    @field_validator("image_data")
    @classmethod
    def must_be_image_data_url(cls, v: str) -> str:
        if not v.startswith("data:image/"):
            raise ValueError("证件照片必须为图片 data URL")
        return v


class OutstandingCollection(BaseModel):
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH
    allow_overpayment: bool = False


class BulkImportRequest(BaseModel):
    text: str


class BulkImportResult(BaseModel):
    imported: int
    skipped: int


# ============== 预订 Schemas ==============

class ReservationBase(BaseModel):
    room_numbers: List[str] = []
    guest_ids: List[str] = []
    room_rates: Dict[str, Decimal] = {}
    check_in: date
    check_out: date
    stay_type: StayType = StayType.RESERVATION
    laundry: Decimal = Field(default=0, ge=0)
    mini_bar: Decimal = Field(default=0, ge=0)
    discount: Decimal = Field(default=0, ge=0)
    extra_charges: Decimal = Field(default=0, ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    on_duty_officer: Optional[str] = None
    special_requests: Optional[str] = None
    notes: Optional[str] = None


class ReservationCreate(ReservationBase):
    new_collection: Decimal = Field(default=0, ge=0)


class ReservationUpdate(ReservationCreate):
    pass


class ReservationResponse(ReservationBase):
    id: str
    status: ReservationStatus
    paid_amount: Decimal
    total_amount: Decimal
    created_at: Optional[datetime] = None
    primary_guest_name: Optional[str] = None
    due_amount: Optional[Decimal] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentCollect(BaseModel):
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH


class CheckOutRequest(BaseModel):
    final_payment: Decimal = Field(default=0, ge=0)


# ============== 账单 Schemas ==============

class InvoiceLine(BaseModel):
    label: str
    amount: Decimal


class InvoiceResponse(BaseModel):
    invoice_no: str
    reservation_id: str
    hotel_name: str
    currency: str
    guest_name: str
    room_numbers: List[str]
    check_in: str
    check_out: str
    nights: int
    lines: List[InvoiceLine]
    room_subtotal: Decimal
    fb_charges: Decimal
    extra_charges: Decimal
    discount: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    balance: Decimal
    copies: List[str]


class InvoiceSummary(BaseModel):
    reservation_id: str
    invoice_no: str
    guest_name: str
    room_numbers: List[str]
    check_in: date
    check_out: date
    status: ReservationStatus
    grand_total: Decimal
    paid_amount: Decimal
    balance: Decimal


# ============== 日报 Schemas ==============

class LedgerRow(BaseModel):
    id: str
    resident_name: str
    room_no: str
    total_rate: Decimal
    collected: Decimal
    due: Decimal


class ReportStats(BaseModel):
    sum_amount: Decimal
    sum_due: Decimal
    sum_bill: Decimal
    closing_balance: Decimal


class DailyReportResponse(BaseModel):
    date: date
    is_closed: bool
    token_adjustment: Decimal
    rows: List[LedgerRow]
    stats: ReportStats


class TokenAdjustmentUpdate(BaseModel):
    amount: Decimal = Field(..., ge=0)


class CloseDayResponse(BaseModel):
    closed_date: date
    next_date: date


# ============== 工资 Schemas ==============

class StaffBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    designation: str = Field(..., min_length=1, max_length=100)
    joining_date: Optional[date] = None
    base_salary: Decimal = Field(default=0, ge=0)
    bonus: Decimal = Field(default=0, ge=0)
    deductions: Decimal = Field(default=0, ge=0)


class StaffCreate(StaffBase):
    pass


class StaffUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    designation: Optional[str] = Field(None, min_length=1, max_length=100)
    joining_date: Optional[date] = None
    base_salary: Optional[Decimal] = Field(None, ge=0)
    bonus: Optional[Decimal] = Field(None, ge=0)
    deductions: Optional[Decimal] = Field(None, ge=0)


class StaffResponse(StaffBase):
    id: str
    net_salary: Decimal
    model_config = ConfigDict(from_attributes=True)


class SalaryPaymentResponse(BaseModel):
    id: str
    staff_id: str
    month: str
    year: int
    amount: Decimal
    status: SalaryStatus
    timestamp: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class SalaryPaymentUpdate(BaseModel):
    status: SalaryStatus


class MonthlyCycleRequest(BaseModel):
    month: Optional[str] = None
    year: Optional[int] = Field(None, ge=2000, le=2100)
    allow_duplicates: bool = False


class PayrollSummary(BaseModel):
    staff_count: int
    total_monthly_payroll: Decimal
    pending_payments: int
    paid_payments: int


# ============== 用户/登录 Schemas ==============

class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=4)
    name: str = Field(..., min_length=1, max_length=100)
    role: Role = Role.FRONT_DESK


class UserUpdate(BaseModel):
    email: Optional[str] = Field(None, min_length=3, max_length=100)
    password: Optional[str] = Field(None, min_length=4)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[Role] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
    navigation: List[str]


class SystemResetRequest(BaseModel):
    confirmation: str


# ============== AI Schemas ==============

class AITextResponse(BaseModel):
    text: str


class RefineNotesRequest(BaseModel):
    special_requests: Optional[str] = None
    notes: Optional[str] = None
