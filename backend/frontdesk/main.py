"""
Hotel Fountain 前台管理系统主应用入口
房态看板、预订入住、客人台账、账单、日报、工资、用户管理
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from frontdesk import __version__
from frontdesk.config import settings
from frontdesk.database import init_db, SessionLocal
from frontdesk.routers import (
    auth, rooms, reservations, guests, billing, transactions, reports, payroll, users, ai, realtime
)
from frontdesk.services.event_bus import event_bus, ALL_EVENTS
from frontdesk.services.realtime import realtime_hub
from frontdesk.services.user_service import UserService

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 初始化数据库
    init_db()

    # 用户表为空时创建默认管理员
    db = SessionLocal()
    try:
        UserService(db).seed_default_admin()
    finally:
        db.close()

    # 实时推送订阅事件总线
    realtime_hub.install(event_bus)
    logger.info(f"{settings.APP_NAME} started")

    yield

    event_bus.unsubscribe(ALL_EVENTS, realtime_hub.handle_event)


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description=f"{settings.HOTEL_NAME} 前台与后台管理系统",
    version=__version__,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(reservations.router)
app.include_router(guests.router)
app.include_router(billing.router)
app.include_router(transactions.router)
app.include_router(reports.router)
app.include_router(payroll.router)
app.include_router(users.router)
app.include_router(ai.router)
app.include_router(realtime.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "hotel": settings.HOTEL_NAME,
        "version": __version__,
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
