"""
用户服务
登录认证、用户维护、默认管理员初始化、系统清空
"""
from typing import List, Optional, Callable
import logging
from sqlalchemy.orm import Session
from frontdesk.config import settings
from frontdesk.models.ontology import (
    User, Role, Guest, Reservation, Transaction, FiscalDay, Room, RoomStatus
)
from frontdesk.models.schemas import UserCreate, UserUpdate
from frontdesk.models.events import ChangeKind, row_to_dict
from frontdesk.security.auth import get_password_hash, verify_password
from frontdesk.services.event_bus import event_bus, Event, publish_change

logger = logging.getLogger(__name__)

PURGE_CONFIRMATION = "PURGE"


class UserService:
    """用户服务"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher or event_bus.publish

    def get_users(self) -> List[User]:
        return self.db.query(User).order_by(User.name).all()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def _require(self, user_id: str) -> User:
        user = self.get_user(user_id)
        if not user:
            raise LookupError("用户不存在")
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """校验邮箱和密码，失败返回 None"""
        user = self.get_user_by_email(email or "")
        if not user or not verify_password(password or "", user.password_hash):
            logger.warning(f"Login failed for {email}")
            return None
        return user

    def create_user(self, data: UserCreate) -> User:
        email = data.email.strip().lower()
        if self.get_user_by_email(email):
            raise ValueError(f"邮箱 '{email}' 已存在")

        user = User(
            email=email,
            password_hash=get_password_hash(data.password),
            name=data.name,
            role=data.role
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        publish_change(self._publish_event, "users", ChangeKind.INSERT,
                       new=row_to_dict(user), source="user_service")
        return user

    def update_user(self, user_id: str, data: UserUpdate) -> User:
        user = self._require(user_id)
        old = row_to_dict(user)
        updates = data.model_dump(exclude_unset=True)

        if updates.get('email'):
            email = updates['email'].strip().lower()
            existing = self.get_user_by_email(email)
            if existing and existing.id != user.id:
                raise ValueError(f"邮箱 '{email}' 已存在")
            user.email = email
        if updates.get('password'):
            user.password_hash = get_password_hash(updates['password'])
        if updates.get('name'):
            user.name = updates['name']
        if updates.get('role'):
            user.role = updates['role']

        self.db.commit()
        self.db.refresh(user)

        publish_change(self._publish_event, "users", ChangeKind.UPDATE,
                       new=row_to_dict(user), old=old, source="user_service")
        return user

    def delete_user(self, user_id: str, current_user_id: str) -> None:
        """删除用户，不能删除自己"""
        if user_id == current_user_id:
            raise ValueError("不能删除当前登录的账号")

        user = self._require(user_id)
        old = row_to_dict(user)
        self.db.delete(user)
        self.db.commit()

        logger.info(f"User {user_id} deleted by {current_user_id}")
        publish_change(self._publish_event, "users", ChangeKind.DELETE,
                       old=old, source="user_service")

    def seed_default_admin(self) -> Optional[User]:
        """用户表为空时创建默认管理员"""
        if self.db.query(User).count() > 0:
            return None

        user = User(
            email=settings.DEFAULT_ADMIN_EMAIL.lower(),
            password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
            name=settings.DEFAULT_ADMIN_NAME,
            role=Role.ADMIN
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Default admin {user.email} created")
        return user

    def reset_system(self, confirmation: str) -> dict:
        """
        清空业务数据：客人、预订、流水、营业日
        所有房间恢复为空闲；用户与员工档案保留
        """
        if confirmation != PURGE_CONFIRMATION:
            raise ValueError(f"请输入 '{PURGE_CONFIRMATION}' 确认清空")

        counts = {
            'guests': self.db.query(Guest).delete(synchronize_session=False),
            'reservations': self.db.query(Reservation).delete(synchronize_session=False),
            'transactions': self.db.query(Transaction).delete(synchronize_session=False),
            'fiscal_days': self.db.query(FiscalDay).delete(synchronize_session=False),
        }
        counts['rooms_reset'] = self.db.query(Room).update(
            {Room.status: RoomStatus.AVAILABLE}, synchronize_session=False
        )
        self.db.commit()
        self.db.expire_all()

        logger.warning(f"System data purged: {counts}")
        for table in ('guests', 'reservations', 'transactions', 'fiscal_days'):
            publish_change(self._publish_event, table, ChangeKind.DELETE, source="user_service")
        publish_change(self._publish_event, "rooms", ChangeKind.UPDATE, source="user_service")
        return counts
