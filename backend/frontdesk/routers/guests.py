"""
客人台账路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import (
    GuestCreate, GuestUpdate, GuestResponse, IdImageUpload,
    OutstandingCollection, BulkImportRequest, BulkImportResult
)
from frontdesk.services.guest_service import GuestService
from frontdesk.security.auth import require_front_desk, require_admin

router = APIRouter(prefix="/guests", tags=["客人台账"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    q: Optional[str] = None,
    outstanding_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """客人列表，支持按姓名/电话/证件号搜索"""
    return GuestService(db).get_guests(q, outstanding_only)


@router.get("/export")
def export_guests(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """导出客人台账（JSON）"""
    return GuestService(db).export()


@router.post("/import", response_model=BulkImportResult)
def import_guests(
    data: BulkImportRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """批量导入客人"""
    return GuestService(db).bulk_import(data.text)


@router.post("", response_model=GuestResponse)
def create_guest(
    data: GuestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """新增客人"""
    return GuestService(db).create_guest(data)


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(
    guest_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    guest = GuestService(db).get_guest(guest_id)
    if not guest:
        raise HTTPException(status_code=404, detail="客人不存在")
    return guest


@router.put("/{guest_id}", response_model=GuestResponse)
def update_guest(
    guest_id: str,
    data: GuestUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """更新客人信息"""
    try:
        return GuestService(db).update_guest(guest_id, data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{guest_id}")
def delete_guest(
    guest_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """删除客人（仅管理员）"""
    try:
        GuestService(db).delete_guest(guest_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "客人已删除"}


@router.post("/{guest_id}/id-image", response_model=GuestResponse)
def upload_id_image(
    guest_id: str,
    data: IdImageUpload,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """上传证件照片"""
    try:
        return GuestService(db).upload_id_image(guest_id, data.image_data)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{guest_id}/collect", response_model=GuestResponse)
def collect_outstanding(
    guest_id: str,
    data: OutstandingCollection,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_front_desk)
):
    """回收欠款"""
    try:
        return GuestService(db).collect_outstanding(
            guest_id, data.amount, data.method, data.allow_overpayment
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
