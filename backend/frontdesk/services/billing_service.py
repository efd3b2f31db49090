"""
账单服务
房费 = Σ 房价 × 间夜；总额 = 房费 + 额外费用 + 洗衣 + 迷你吧 - 折扣
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from frontdesk.config import settings
from frontdesk.models.ontology import Reservation, Room, Guest, ReservationStatus
from frontdesk.services.date_utils import nights_between, format_to_ddmmyyyy

INVOICE_COPIES = ["Guest Copy", "Office Copy"]
WALK_IN_GUEST = "Walk-in Guest"


def _money(value) -> Decimal:
    return Decimal(str(value or 0))


@dataclass
class BillBreakdown:
    """单个预订的账单明细"""
    nights: int
    room_lines: Dict[str, Decimal] = field(default_factory=dict)  # 房间号 -> 房费小计
    room_subtotal: Decimal = Decimal("0")
    laundry: Decimal = Decimal("0")
    mini_bar: Decimal = Decimal("0")
    extra_charges: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")

    @property
    def fb_charges(self) -> Decimal:
        """餐饮类费用（迷你吧 + 洗衣）"""
        return self.mini_bar + self.laundry

    @property
    def due(self) -> Decimal:
        return self.grand_total - self.paid_amount


def room_rate(reservation: Reservation, room_number: str,
              room_prices: Dict[str, Decimal]) -> Decimal:
    """房价：优先使用预订中的自定义房价，否则使用房间牌价"""
    custom = (reservation.room_rates or {}).get(room_number)
    if custom is not None:
        return _money(custom)
    return _money(room_prices.get(room_number, 0))


def calculate_bill(reservation: Reservation, room_prices: Dict[str, Decimal],
                   extra_paid: Decimal = Decimal("0")) -> BillBreakdown:
    """
    计算账单

    Args:
        reservation: 预订
        room_prices: 房间号 -> 牌价
        extra_paid: 尚未入账的本次收款
    """
    nights = nights_between(reservation.check_in, reservation.check_out)
    breakdown = BillBreakdown(nights=nights)

    for room_number in reservation.room_numbers or []:
        breakdown.room_lines[room_number] = room_rate(reservation, room_number, room_prices) * nights
    breakdown.room_subtotal = sum(breakdown.room_lines.values(), Decimal("0"))

    breakdown.laundry = _money(reservation.laundry)
    breakdown.mini_bar = _money(reservation.mini_bar)
    breakdown.extra_charges = _money(reservation.extra_charges)
    breakdown.discount = _money(reservation.discount)
    breakdown.grand_total = (
        breakdown.room_subtotal
        + breakdown.extra_charges
        + breakdown.laundry
        + breakdown.mini_bar
        - breakdown.discount
    )
    breakdown.paid_amount = _money(reservation.paid_amount) + _money(extra_paid)
    return breakdown


class BillingService:
    """账单/发票服务"""

    def __init__(self, db: Session):
        self.db = db

    def room_prices(self) -> Dict[str, Decimal]:
        """房间号 -> 牌价"""
        return {r.room_number: _money(r.price) for r in self.db.query(Room).all()}

    def primary_guest(self, reservation: Reservation) -> Optional[Guest]:
        """主客人：guest_ids 中第一个存在的客人"""
        for guest_id in reservation.guest_ids or []:
            guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
            if guest:
                return guest
        return None

    def get_bill(self, reservation: Reservation) -> BillBreakdown:
        return calculate_bill(reservation, self.room_prices())

    def list_invoices(self, q: Optional[str] = None) -> List[dict]:
        """发票列表（不含已取消预订），支持按房间号/客人/单号搜索"""
        prices = self.room_prices()
        reservations = self.db.query(Reservation).filter(
            Reservation.status != ReservationStatus.CANCELLED
        ).order_by(Reservation.check_in.desc()).all()

        s = (q or "").lower().strip()
        result = []
        for res in reservations:
            guest = self.primary_guest(res)
            guest_name = guest.name if guest else WALK_IN_GUEST
            invoice_no = res.id[:8].upper()
            if s and not (
                s in " ".join(res.room_numbers or []).lower()
                or s in guest_name.lower()
                or s in invoice_no.lower()
            ):
                continue

            bill = calculate_bill(res, prices)
            result.append({
                'reservation_id': res.id,
                'invoice_no': invoice_no,
                'guest_name': guest_name,
                'room_numbers': list(res.room_numbers or []),
                'check_in': res.check_in,
                'check_out': res.check_out,
                'status': res.status,
                'grand_total': bill.grand_total,
                'paid_amount': bill.paid_amount,
                'balance': bill.due,
            })
        return result

    def get_invoice(self, reservation_id: str) -> dict:
        """生成发票数据（宾客联 / 存根联）"""
        res = self.db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not res:
            raise LookupError("预订不存在")

        bill = self.get_bill(res)
        guest = self.primary_guest(res)

        lines = [
            {'label': f"Room {number} ({bill.nights} Nights)", 'amount': amount}
            for number, amount in bill.room_lines.items()
        ]
        if bill.fb_charges > 0:
            lines.append({'label': "F&B (Mini-bar & Laundry)", 'amount': bill.fb_charges})
        if bill.extra_charges > 0:
            lines.append({'label': "Extra Charges", 'amount': bill.extra_charges})
        if bill.discount > 0:
            lines.append({'label': "Discount", 'amount': -bill.discount})

        return {
            'invoice_no': res.id[:8].upper(),
            'reservation_id': res.id,
            'hotel_name': settings.HOTEL_NAME,
            'currency': settings.CURRENCY_LABEL,
            'guest_name': guest.name if guest else WALK_IN_GUEST,
            'room_numbers': list(res.room_numbers or []),
            'check_in': format_to_ddmmyyyy(res.check_in),
            'check_out': format_to_ddmmyyyy(res.check_out),
            'nights': bill.nights,
            'lines': lines,
            'room_subtotal': bill.room_subtotal,
            'fb_charges': bill.fb_charges,
            'extra_charges': bill.extra_charges,
            'discount': bill.discount,
            'grand_total': bill.grand_total,
            'paid_amount': bill.paid_amount,
            'balance': bill.due,
            'copies': list(INVOICE_COPIES),
        }
