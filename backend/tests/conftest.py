"""
Pytest 配置和共享 fixtures
"""
import os
import tempfile

# 应用启动时的建表/初始化管理员使用独立的临时库，AI 默认关闭
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.gettempdir(), "frontdesk_test.db")
os.environ["ENABLE_LLM"] = "false"

import pytest
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from frontdesk.database import Base, get_db
from frontdesk.models import ontology  # noqa
from frontdesk.models.ontology import (
    User, Role, Room, RoomCategory, RoomStatus, Guest, IdType
)
from frontdesk.security.auth import get_password_hash, create_access_token
from frontdesk.main import app

ID_IMAGE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def events():
    """收集服务发布的事件"""
    return []


@pytest.fixture
def publisher(events):
    """注入服务的事件发布器"""
    return events.append


# ============== 认证相关 Fixtures ==============

def _create_user(db_session, email: str, name: str, role: Role) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash("123456"),
        name=name,
        role=role
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    """管理员"""
    return _create_user(db_session, "admin@test.com", "管理员", Role.ADMIN)


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(admin_user.id, admin_user.role)


@pytest.fixture
def front_desk_token(db_session):
    """前台用户 token"""
    user = _create_user(db_session, "desk@test.com", "前台小王", Role.FRONT_DESK)
    return create_access_token(user.id, user.role)


@pytest.fixture
def accountant_token(db_session):
    """会计用户 token"""
    user = _create_user(db_session, "accounts@test.com", "会计小李", Role.ACCOUNTANT)
    return create_access_token(user.id, user.role)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def front_desk_headers(front_desk_token):
    return {"Authorization": f"Bearer {front_desk_token}"}


@pytest.fixture
def accountant_headers(accountant_token):
    return {"Authorization": f"Bearer {accountant_token}"}


# ============== 业务对象 Fixtures ==============

def _create_room(db_session, number: str, category: RoomCategory, price: str,
                 status: RoomStatus = RoomStatus.AVAILABLE) -> Room:
    room = Room(room_number=number, category=category, price=Decimal(price), status=status)
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_rooms(db_session):
    """三间房：101 / 102 / 201"""
    return [
        _create_room(db_session, "101", RoomCategory.FOUNTAIN_DELUXE, "5000.00"),
        _create_room(db_session, "102", RoomCategory.PREMIUM_DELUXE, "7000.00"),
        _create_room(db_session, "201", RoomCategory.ROYAL_SUITE, "12000.00"),
    ]


@pytest.fixture
def sample_guest(db_session):
    """已上传证件照片的客人"""
    guest = Guest(
        name="Rahim Uddin",
        phone="01711000000",
        id_type=IdType.NID,
        id_number="1990123456",
        city="Dhaka",
        country="Bangladesh",
        id_image_url=ID_IMAGE,
        outstanding_balance=Decimal("0")
    )
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


@pytest.fixture
def guest_without_id(db_session):
    """未上传证件照片的客人"""
    guest = Guest(
        name="Karim Ahmed",
        phone="01811000000",
        id_type=IdType.PASSPORT,
        id_number="BX0998877",
        outstanding_balance=Decimal("0")
    )
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def tomorrow(today):
    return today + timedelta(days=1)
