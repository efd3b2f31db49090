"""
日报路由 - 营业日台账、调整款、日结
"""
from typing import Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.ontology import User
from frontdesk.models.schemas import (
    DailyReportResponse, TokenAdjustmentUpdate, CloseDayResponse, AITextResponse
)
from frontdesk.services.report_service import ReportService
from frontdesk.services.ai_service import AIService, get_ai_service
from frontdesk.security.auth import require_any_role

router = APIRouter(prefix="/reports", tags=["统计报表"])


@router.get("/daily", response_model=DailyReportResponse)
def get_daily_report(
    business_date: Optional[date] = Query(None, alias="date", description="营业日，默认今天"),
    q: Optional[str] = Query(None, description="房间号或住客姓名"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """营业日报"""
    return ReportService(db).daily_report(business_date or date.today(), q)


@router.put("/daily/{business_date}/token")
def save_token_adjustment(
    business_date: date,
    data: TokenAdjustmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """保存当日调整款"""
    try:
        day = ReportService(db).save_token_adjustment(business_date, data.amount)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"date": day.business_date, "token_adjustment": day.token_adjustment}


@router.post("/daily/{business_date}/close", response_model=CloseDayResponse)
def close_day(
    business_date: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role)
):
    """日结"""
    try:
        return ReportService(db).close_day(business_date, current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/daily/{business_date}/summary", response_model=AITextResponse)
def summarize_day(
    business_date: date,
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
    current_user: User = Depends(require_any_role)
):
    """AI 日报点评"""
    return {"text": ReportService(db).summarize_day(business_date, ai)}
