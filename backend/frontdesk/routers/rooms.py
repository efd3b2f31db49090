"""
房间管理路由 - 房间维护与房态看板
"""
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User, RoomStatus, RoomCategory
from frontdesk.models.schemas import (
    RoomCreate, RoomUpdate, RoomResponse, RoomStatusUpdate,
    StatusBoardResponse, ReservationResponse
)
from frontdesk.services.room_service import RoomService
from frontdesk.services.reservation_service import ReservationService
from frontdesk.security.auth import require_any_role, require_front_desk, require_admin

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    category: Optional[RoomCategory] = None,
    status: Optional[RoomStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """获取房间列表（物理状态）"""
    return RoomService(db).get_rooms(category, status)


@router.get("/board", response_model=StatusBoardResponse)
def get_status_board(
    view_date: Optional[date] = Query(None, description="查看日期，默认今天"),
    category: Optional[RoomCategory] = None,
    status: Optional[RoomStatus] = Query(None, description="按有效状态过滤"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """房态看板"""
    return RoomService(db).get_status_board(view_date, category, status)


@router.post("", response_model=RoomResponse)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """创建房间"""
    try:
        return RoomService(db).create_room(data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/{room_number}", response_model=RoomResponse)
def get_room(
    room_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """获取房间"""
    room = RoomService(db).get_room_by_number(room_number)
    if not room:
        raise HTTPException(status_code=404, detail="房间不存在")
    return room


@router.put("/{room_number}", response_model=RoomResponse)
def update_room(
    room_number: str,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """更新房间类别/牌价"""
    try:
        return RoomService(db).update_room(room_number, data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{room_number}/status", response_model=RoomResponse)
def update_room_status(
    room_number: str,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """更新房间物理状态"""
    try:
        return RoomService(db).update_room_status(room_number, data.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{room_number}/active-reservation", response_model=Optional[ReservationResponse])
def get_active_reservation(
    room_number: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """房间当前关联的预订（在住或待入住），无则返回 null"""
    res = RoomService(db).get_active_reservation_for_room(room_number)
    if not res:
        return None
    return ReservationService(db).to_response(res)
