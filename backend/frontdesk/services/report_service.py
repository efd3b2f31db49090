"""
日报服务
营业日流水台账、统计、调整款（token）与日结
"""
from typing import List, Optional, Callable
from datetime import date, datetime, timedelta
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from frontdesk.models.ontology import Reservation, ReservationStatus, FiscalDay
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change
from frontdesk.services.billing_service import BillingService, calculate_bill, WALK_IN_GUEST
from frontdesk.services.ai_service import AIService

logger = logging.getLogger(__name__)


class ReportService:
    """日报服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish
        self.billing = BillingService(db)

    # ============== 营业日 ==============

    def get_fiscal_day(self, business_date: date) -> Optional[FiscalDay]:
        return self.db.query(FiscalDay).filter(FiscalDay.business_date == business_date).first()

    def _get_or_create_fiscal_day(self, business_date: date) -> FiscalDay:
        day = self.get_fiscal_day(business_date)
        if day is None:
            day = FiscalDay(business_date=business_date, token_adjustment=Decimal("0"), is_closed=False)
            self.db.add(day)
            self.db.flush()
        return day

    def get_token_adjustment(self, business_date: date) -> Decimal:
        day = self.get_fiscal_day(business_date)
        return Decimal(day.token_adjustment or 0) if day else Decimal("0")

    def save_token_adjustment(self, business_date: date, amount: Decimal) -> FiscalDay:
        """保存当日调整款"""
        amount = Decimal(amount or 0)
        if amount < 0:
            raise ValueError("调整金额不能为负数")

        day = self._get_or_create_fiscal_day(business_date)
        if day.is_closed:
            raise ValueError(f"{business_date.isoformat()} 已日结，无法修改")

        old = row_to_dict(day)
        day.token_adjustment = amount
        self.db.commit()
        self.db.refresh(day)

        logger.info(f"Token adjustment {amount} saved for {business_date}")
        publish_change(self._publish_event, "fiscal_days", ChangeKind.UPDATE,
                       new=row_to_dict(day), old=old, source="report_service")
        return day

    def close_day(self, business_date: date, closed_by: Optional[str] = None) -> dict:
        """
        日结
        同一营业日只能日结一次；返回下一营业日（调整款从 0 开始）
        """
        day = self._get_or_create_fiscal_day(business_date)
        if day.is_closed:
            raise ValueError(f"{business_date.isoformat()} 已日结")

        old = row_to_dict(day)
        day.is_closed = True
        day.closed_at = datetime.utcnow()
        day.closed_by = closed_by
        self.db.commit()
        self.db.refresh(day)

        logger.info(f"Fiscal day {business_date} closed by {closed_by}")
        publish_change(self._publish_event, "fiscal_days", ChangeKind.UPDATE,
                       new=row_to_dict(day), old=old, source="report_service")

        return {
            'closed_date': business_date,
            'next_date': business_date + timedelta(days=1),
        }

    # ============== 台账 ==============

    def daily_ledger(self, business_date: date, q: Optional[str] = None) -> List[dict]:
        """
        营业日台账
        覆盖 check_in <= 日期 <= check_out 的未取消预订（两端都含）
        """
        reservations = self.db.query(Reservation).filter(
            Reservation.status != ReservationStatus.CANCELLED,
            Reservation.check_in <= business_date,
            Reservation.check_out >= business_date
        ).order_by(Reservation.check_in).all()

        prices = self.billing.room_prices()
        s = (q or "").strip().lower()
        rows = []
        for res in reservations:
            guest = self.billing.primary_guest(res)
            resident_name = guest.name if guest else WALK_IN_GUEST
            room_no = ", ".join(res.room_numbers or [])
            if s and s not in room_no.lower() and s not in resident_name.lower():
                continue

            bill = calculate_bill(res, prices)
            rows.append({
                'id': res.id,
                'resident_name': resident_name,
                'room_no': room_no,
                'total_rate': bill.grand_total,
                'collected': bill.paid_amount,
                'due': bill.due,
            })
        return rows

    @staticmethod
    def report_stats(rows: List[dict], token_adjustment: Decimal = Decimal("0")) -> dict:
        sum_amount = sum((r['collected'] for r in rows), Decimal("0"))
        return {
            'sum_amount': sum_amount,
            'sum_due': sum((r['due'] for r in rows), Decimal("0")),
            'sum_bill': sum((r['total_rate'] for r in rows), Decimal("0")),
            'closing_balance': sum_amount - Decimal(token_adjustment or 0),
        }

    def daily_report(self, business_date: date, q: Optional[str] = None) -> dict:
        """日报：台账 + 统计 + 日结状态"""
        rows = self.daily_ledger(business_date, q)
        token = self.get_token_adjustment(business_date)
        day = self.get_fiscal_day(business_date)
        return {
            'date': business_date,
            'is_closed': bool(day and day.is_closed),
            'token_adjustment': token,
            'rows': rows,
            'stats': self.report_stats(rows, token),
        }

    def summarize_day(self, business_date: date, ai: AIService) -> str:
        """AI 日报点评"""
        report = self.daily_report(business_date)
        stats = {k: str(v) for k, v in report['stats'].items()}
        stats['token_adjustment'] = str(report['token_adjustment'])
        return ai.summarize_day(business_date.isoformat(), stats)
