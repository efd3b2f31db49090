"""
预订管理路由 - 预订、入住、收款、退房
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import (
    ReservationCreate, ReservationUpdate, ReservationResponse,
    PaymentCollect, CheckOutRequest
)
from frontdesk.services.reservation_service import ReservationService
from frontdesk.security.auth import require_front_desk, require_admin

router = APIRouter(prefix="/reservations", tags=["预订管理"])


def _raise_http(e: Exception):
    if isinstance(e, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=List[ReservationResponse])
def list_reservations(
    q: Optional[str] = Query(None, description="房间号、客人姓名或预订号"),
    on_date: Optional[date] = Query(None, alias="date", description="入住日或离店日"),
    status_filter: str = Query("All", description="All / Reserved / Check-In / Checked-Out"),
    include_cancelled: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """预订列表"""
    service = ReservationService(db)
    try:
        reservations = service.search_reservations(q, on_date, status_filter, include_cancelled)
    except ValueError as e:
        _raise_http(e)
    return [service.to_response(r) for r in reservations]


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """获取预订详情"""
    service = ReservationService(db)
    res = service.get_reservation(reservation_id)
    if not res:
        raise HTTPException(status_code=404, detail="预订不存在")
    return service.to_response(res)


@router.post("", response_model=ReservationResponse)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """创建预订 / 直接入住"""
    service = ReservationService(db)
    try:
        res = service.create_reservation(data)
    except (ValueError, LookupError) as e:
        _raise_http(e)
    return service.to_response(res)


@router.put("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: str,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """编辑预订"""
    service = ReservationService(db)
    try:
        res = service.update_reservation(reservation_id, data)
    except (ValueError, LookupError) as e:
        _raise_http(e)
    return service.to_response(res)


@router.post("/{reservation_id}/check-in", response_model=ReservationResponse)
def quick_check_in(
    reservation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """快速入住"""
    service = ReservationService(db)
    try:
        res = service.quick_check_in(reservation_id)
    except (ValueError, LookupError) as e:
        _raise_http(e)
    return service.to_response(res)


@router.post("/{reservation_id}/payments", response_model=ReservationResponse)
def collect_payment(
    reservation_id: str,
    data: PaymentCollect,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """收款"""
    service = ReservationService(db)
    try:
        res = service.collect_payment(reservation_id, data.amount, data.method)
    except (ValueError, LookupError) as e:
        _raise_http(e)
    return service.to_response(res)


@router.post("/{reservation_id}/check-out", response_model=ReservationResponse)
def check_out(
    reservation_id: str,
    data: CheckOutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """退房，未结金额转入客人欠款"""
    service = ReservationService(db)
    try:
        res = service.check_out(reservation_id, data.final_payment)
    except (ValueError, LookupError) as e:
        _raise_http(e)
    return service.to_response(res)


@router.delete("/{reservation_id}")
def delete_reservation(
    reservation_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """删除预订（仅管理员）"""
    try:
        ReservationService(db).delete_reservation(reservation_id)
    except LookupError as e:
        _raise_http(e)
    return {"message": "预订已删除"}
