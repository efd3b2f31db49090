"""
工资管理路由（仅管理员）
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User, SalaryStatus
from frontdesk.models.schemas import (
    StaffCreate, StaffUpdate, StaffResponse, SalaryPaymentResponse,
    SalaryPaymentUpdate, MonthlyCycleRequest, PayrollSummary
)
from frontdesk.services.payroll_service import PayrollService, DuplicatePayrollCycle
from frontdesk.security.auth import require_payroll

router = APIRouter(prefix="/payroll", tags=["工资管理"])


@router.get("/summary", response_model=PayrollSummary)
def get_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    return PayrollService(db).summary()


# ============== 员工 ==============

@router.get("/staff", response_model=List[StaffResponse])
def list_staff(
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    """员工列表，q 匹配姓名或职位"""
    return PayrollService(db).get_staff_list(q)


@router.post("/staff", response_model=StaffResponse)
def create_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    return PayrollService(db).create_staff(data)


@router.put("/staff/{staff_id}", response_model=StaffResponse)
def update_staff(
    staff_id: str,
    data: StaffUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    try:
        return PayrollService(db).update_staff(staff_id, data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/staff/{staff_id}")
def delete_staff(
    staff_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    """删除员工及其工资记录"""
    try:
        PayrollService(db).delete_staff(staff_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "员工已删除"}


# ============== 工资发放 ==============

@router.get("/payments", response_model=List[SalaryPaymentResponse])
def list_payments(
    month: Optional[str] = None,
    year: Optional[int] = None,
    staff_id: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    return PayrollService(db).get_payments(month, year, staff_id)


@router.get("/payments/status")
def get_payment_status(
    staff_id: str,
    month: str,
    year: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    """某员工某月的发放状态，无记录时 status 为 null"""
    payment_status: Optional[SalaryStatus] = PayrollService(db).payment_status(staff_id, month, year)
    return {"staff_id": staff_id, "month": month, "year": year, "status": payment_status}


@router.post("/cycles", response_model=List[SalaryPaymentResponse])
def generate_monthly_cycle(
    data: MonthlyCycleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    """生成月度工资批次"""
    try:
        return PayrollService(db).generate_monthly_cycle(data.month, data.year, data.allow_duplicates)
    except DuplicatePayrollCycle as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/payments/{payment_id}", response_model=SalaryPaymentResponse)
def update_payment(
    payment_id: str,
    data: SalaryPaymentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    try:
        return PayrollService(db).update_salary_payment(payment_id, data.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/payments/{payment_id}")
def delete_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_payroll)
):
    try:
        PayrollService(db).delete_salary_payment(payment_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "工资记录已删除"}
