"""
流水路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import TransactionCreate, TransactionResponse
from frontdesk.services.transaction_service import TransactionService
from frontdesk.security.auth import require_any_role, require_front_desk

router = APIRouter(prefix="/transactions", tags=["收支流水"])


@router.get("", response_model=List[TransactionResponse])
def list_transactions(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """流水列表（最新在前）"""
    return TransactionService(db).list_transactions(limit)


@router.post("", response_model=TransactionResponse)
def add_transaction(
    data: TransactionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """登记流水（洗衣、迷你吧等）"""
    try:
        return TransactionService(db).add_transaction(
            data.room_number, data.guest_name, data.type, data.amount
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
