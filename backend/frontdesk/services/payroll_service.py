"""
工资服务
员工档案、月度工资发放批次、发放状态
"""
from typing import List, Optional, Callable
from datetime import date
from decimal import Decimal
import logging
from sqlalchemy import or_
from sqlalchemy.orm import Session
from frontdesk.models.ontology import Staff, SalaryPayment, SalaryStatus
from frontdesk.models.schemas import StaffCreate, StaffUpdate
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change
from frontdesk.services.date_utils import MONTH_NAMES, current_month_name

logger = logging.getLogger(__name__)


class DuplicatePayrollCycle(ValueError):
    """当月工资批次已存在"""
    pass


class PayrollService:
    """工资服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    # ============== 员工 ==============

    def get_staff_list(self, q: Optional[str] = None) -> List[Staff]:
        """员工列表，q 匹配姓名或职位（不区分大小写）"""
        query = self.db.query(Staff)
        if q:
            s = q.strip()
            query = query.filter(or_(
                Staff.name.icontains(s, autoescape=True),
                Staff.designation.icontains(s, autoescape=True),
            ))
        return query.order_by(Staff.name).all()

    def get_staff(self, staff_id: str) -> Optional[Staff]:
        return self.db.query(Staff).filter(Staff.id == staff_id).first()

    def _require_staff(self, staff_id: str) -> Staff:
        staff = self.get_staff(staff_id)
        if not staff:
            raise LookupError("员工不存在")
        return staff

    def create_staff(self, data: StaffCreate) -> Staff:
        staff = Staff(**data.model_dump())
        self.db.add(staff)
        self.db.commit()
        self.db.refresh(staff)

        publish_change(self._publish_event, "staff", ChangeKind.INSERT,
                       new=row_to_dict(staff), source="payroll_service")
        return staff

    def update_staff(self, staff_id: str, data: StaffUpdate) -> Staff:
        staff = self._require_staff(staff_id)
        old = row_to_dict(staff)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(staff, key, value)
        self.db.commit()
        self.db.refresh(staff)

        publish_change(self._publish_event, "staff", ChangeKind.UPDATE,
                       new=row_to_dict(staff), old=old, source="payroll_service")
        return staff

    def delete_staff(self, staff_id: str) -> None:
        """删除员工及其工资发放记录"""
        staff = self._require_staff(staff_id)
        old = row_to_dict(staff)

        payments = self.db.query(SalaryPayment).filter(SalaryPayment.staff_id == staff_id).all()
        removed = [row_to_dict(p) for p in payments]
        for payment in payments:
            self.db.delete(payment)
        self.db.delete(staff)
        self.db.commit()

        logger.info(f"Staff {staff_id} deleted with {len(removed)} salary payments")
        for payment in removed:
            publish_change(self._publish_event, "salary_payments", ChangeKind.DELETE,
                           old=payment, source="payroll_service")
        publish_change(self._publish_event, "staff", ChangeKind.DELETE,
                       old=old, source="payroll_service")

    def total_monthly_payroll(self) -> Decimal:
        return sum((s.net_salary for s in self.get_staff_list()), Decimal("0"))

    # ============== 工资发放 ==============

    def get_payments(self, month: Optional[str] = None, year: Optional[int] = None,
                     staff_id: Optional[str] = None) -> List[SalaryPayment]:
        query = self.db.query(SalaryPayment)
        if month:
            query = query.filter(SalaryPayment.month == month)
        if year:
            query = query.filter(SalaryPayment.year == year)
        if staff_id:
            query = query.filter(SalaryPayment.staff_id == staff_id)
        return query.order_by(SalaryPayment.timestamp.desc()).all()

    def generate_monthly_cycle(self, month: Optional[str] = None, year: Optional[int] = None,
                               allow_duplicates: bool = False) -> List[SalaryPayment]:
        """
        生成月度工资批次：每位员工一条待发放记录，金额为应发工资

        Raises:
            DuplicatePayrollCycle: 当月已有记录且未允许重复
        """
        month = month or current_month_name()
        year = year or date.today().year
        if month not in MONTH_NAMES:
            raise ValueError(f"无效的月份: {month}")

        if self.get_payments(month, year) and not allow_duplicates:
            raise DuplicatePayrollCycle(f"{month} {year} 的工资批次已存在")

        payments = []
        for staff in self.get_staff_list():
            payment = SalaryPayment(
                staff_id=staff.id,
                month=month,
                year=year,
                amount=staff.net_salary,
                status=SalaryStatus.PENDING
            )
            self.db.add(payment)
            payments.append(payment)
        self.db.commit()

        logger.info(f"Payroll cycle {month} {year} generated for {len(payments)} staff")
        for payment in payments:
            self.db.refresh(payment)
            publish_change(self._publish_event, "salary_payments", ChangeKind.INSERT,
                           new=row_to_dict(payment), source="payroll_service")
        return payments

    def payment_status(self, staff_id: str, month: str, year: int) -> Optional[SalaryStatus]:
        """某员工某月的发放状态，无记录返回 None"""
        payments = self.get_payments(month, year, staff_id)
        return payments[0].status if payments else None

    def _require_payment(self, payment_id: str) -> SalaryPayment:
        payment = self.db.query(SalaryPayment).filter(SalaryPayment.id == payment_id).first()
        if not payment:
            raise LookupError("工资记录不存在")
        return payment

    def update_salary_payment(self, payment_id: str, status: SalaryStatus) -> SalaryPayment:
        payment = self._require_payment(payment_id)
        old = row_to_dict(payment)
        payment.status = status
        self.db.commit()
        self.db.refresh(payment)

        publish_change(self._publish_event, "salary_payments", ChangeKind.UPDATE,
                       new=row_to_dict(payment), old=old, source="payroll_service")
        return payment

    def delete_salary_payment(self, payment_id: str) -> None:
        payment = self._require_payment(payment_id)
        old = row_to_dict(payment)
        self.db.delete(payment)
        self.db.commit()

        publish_change(self._publish_event, "salary_payments", ChangeKind.DELETE,
                       old=old, source="payroll_service")

    def summary(self) -> dict:
        """工资概览"""
        payments = self.get_payments()
        return {
            'staff_count': len(self.get_staff_list()),
            'total_monthly_payroll': self.total_monthly_payroll(),
            'pending_payments': len([p for p in payments if p.status == SalaryStatus.PENDING]),
            'paid_payments': len([p for p in payments if p.status == SalaryStatus.PAID]),
        }
