"""
AI 辅助路由 - 运营简报、备注润色
"""
from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import AITextResponse, RefineNotesRequest
from frontdesk.services.ai_service import AIService, get_ai_service
from frontdesk.services.room_service import RoomService
from frontdesk.security.auth import require_any_role, require_front_desk

router = APIRouter(prefix="/ai", tags=["AI 辅助"])


@router.get("/briefing", response_model=AITextResponse)
def operations_briefing(
    view_date: Optional[date] = Query(None, description="查看日期，默认今天"),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
    current_user: User = Depends(require_any_role)
):
    """根据当日房态生成运营简报"""
    board = RoomService(db).get_status_board(view_date)
    return {"text": ai.operations_briefing(board['stats'])}


@router.post("/refine-notes", response_model=AITextResponse)
def refine_notes(
    data: RefineNotesRequest,
    ai: AIService = Depends(get_ai_service),
    current_user: User = Depends(require_front_desk)
):
    """润色预订备注"""
    try:
        return {"text": ai.refine_notes(data.special_requests, data.notes)}
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
