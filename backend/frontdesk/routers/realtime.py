"""
实时推送路由 - WebSocket 转发表变更事件
连接地址：/realtime?token=<JWT>&tables=rooms,guests
"""
import asyncio
import logging
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status, Query
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.security.auth import user_from_token
from frontdesk.services.realtime import realtime_hub, parse_tables, Subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["实时推送"])


async def _forward(websocket: WebSocket, sub: Subscription) -> None:
    """将订阅队列中的消息发送给客户端"""
    try:
        while True:
            message = await sub.queue.get()
            await websocket.send_json(message)
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.debug(f"Realtime subscription {sub.id} send stopped: {e}")


@router.websocket("/realtime")
async def realtime(
    websocket: WebSocket,
    token: str = Query(""),
    tables: str = Query(""),
    db: Session = Depends(get_db)
):
    user = user_from_token(token, db) if token else None
    db.close()
    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    sub = realtime_hub.register(parse_tables(tables))
    sender = asyncio.create_task(_forward(websocket, sub))
    logger.info(f"Realtime client connected: {user.email}")

    try:
        # 客户端消息仅用于保持连接
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Realtime client disconnected: {user.email}")
    finally:
        sender.cancel()
        realtime_hub.unregister(sub)
