"""
流水服务
记录前台收款、洗衣、迷你吧等收支流水
"""
from typing import List, Optional, Callable
from decimal import Decimal
import logging
from sqlalchemy.orm import Session
from frontdesk.models.ontology import Transaction, TransactionType
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.services.event_bus import event_bus, Event, publish_change

logger = logging.getLogger(__name__)


class TransactionService:
    """流水服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def list_transactions(self, limit: Optional[int] = None) -> List[Transaction]:
        """获取流水（最新在前）"""
        query = self.db.query(Transaction).order_by(Transaction.timestamp.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def add_transaction(self, room_number: str, guest_name: str,
                        type: TransactionType, amount: Decimal) -> Transaction:
        """新增流水，时间戳由服务端生成"""
        if amount is None or Decimal(amount) <= 0:
            raise ValueError("流水金额必须大于 0")

        tx = Transaction(
            room_number=room_number,
            guest_name=guest_name,
            type=type,
            amount=amount
        )
        self.db.add(tx)
        self.db.commit()
        self.db.refresh(tx)

        logger.info(f"Transaction {type.value} {amount} for {guest_name} ({room_number})")
        publish_change(self._publish_event, "transactions", ChangeKind.INSERT,
                       new=row_to_dict(tx), source="transaction_service")
        return tx
