"""
账单路由 - 发票列表与发票详情
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import InvoiceResponse, InvoiceSummary
from frontdesk.services.billing_service import BillingService
from frontdesk.security.auth import require_any_role

router = APIRouter(prefix="/billing", tags=["账单管理"])


@router.get("/invoices", response_model=List[InvoiceSummary])
def list_invoices(
    q: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """发票列表（不含已取消预订）"""
    return BillingService(db).list_invoices(q)


@router.get("/invoices/{reservation_id}", response_model=InvoiceResponse)
def get_invoice(
    reservation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """发票详情"""
    try:
        return BillingService(db).get_invoice(reservation_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
