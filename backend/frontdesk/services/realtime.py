"""
实时推送 - 将事件总线上的表变更事件转发给 WebSocket 客户端
事件总线的处理器运行在发布者线程中，通过 call_soon_threadsafe 投递到连接所在的事件循环
"""
import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set

from frontdesk.models.events import TABLE_EVENTS
from frontdesk.services.event_bus import ALL_EVENTS, Event, EventBus

logger = logging.getLogger(__name__)

# 单个连接最多积压的消息数，超出后丢弃新消息
QUEUE_MAXSIZE = 256


def parse_tables(value: Optional[str]) -> Set[str]:
    """解析订阅表名（逗号分隔），忽略未知表名；空集合表示订阅全部"""
    if not value:
        return set()
    tables = {t.strip() for t in value.split(",") if t.strip()}
    unknown = tables - set(TABLE_EVENTS)
    if unknown:
        logger.warning(f"Ignoring unknown realtime tables: {sorted(unknown)}")
    return tables & set(TABLE_EVENTS)


def event_message(event: Event) -> dict:
    """推送给客户端的消息体"""
    return {
        "event_type": event.event_type,
        "event_id": event.event_id,
        "table": event.data.get("table"),
        "change": event.data.get("change"),
        "new": event.data.get("new"),
        "old": event.data.get("old"),
        "timestamp": event.data.get("timestamp"),
    }


@dataclass
class Subscription:
    """单个 WebSocket 连接的订阅"""
    id: int
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue
    tables: Set[str] = field(default_factory=set)
    dropped: int = 0

    def wants(self, table: Optional[str]) -> bool:
        return not self.tables or table in self.tables

    def offer(self, message: dict) -> None:
        """入队（在连接所在的事件循环中执行），队列已满时丢弃"""
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Realtime subscription {self.id} queue full, dropped {message.get('event_type')}")


class RealtimeHub:
    """
    连接管理器
    每个连接一个队列；事件按订阅的表过滤后放入队列，由连接自己的发送任务取出
    """

    def __init__(self, queue_maxsize: int = QUEUE_MAXSIZE):
        self._queue_maxsize = queue_maxsize
        self._subscriptions: Dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def register(self, tables: Iterable[str] = ()) -> Subscription:
        """在当前事件循环中登记订阅（需在协程中调用）"""
        sub = Subscription(
            id=next(self._ids),
            loop=asyncio.get_running_loop(),
            queue=asyncio.Queue(maxsize=self._queue_maxsize),
            tables=set(tables)
        )
        with self._lock:
            self._subscriptions[sub.id] = sub
        logger.info(f"Realtime subscription {sub.id} opened (tables: {sorted(sub.tables) or 'all'})")
        return sub

    def unregister(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(sub.id, None)
        logger.info(f"Realtime subscription {sub.id} closed")

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def handle_event(self, event: Event) -> None:
        """事件总线处理器"""
        message = event_message(event)
        with self._lock:
            targets = [s for s in self._subscriptions.values() if s.wants(message["table"])]

        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub.offer, message)
            except RuntimeError:
                # 事件循环已关闭
                logger.debug(f"Realtime subscription {sub.id} loop closed, dropping")
                self.unregister(sub)

    def install(self, bus: EventBus) -> None:
        """订阅事件总线上的全部事件"""
        bus.subscribe(ALL_EVENTS, self.handle_event)


# 全局实例
realtime_hub = RealtimeHub()
