"""
认证路由
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from frontdesk.database import get_db
from frontdesk.models.schemas import LoginRequest, LoginResponse
from frontdesk.models.ontology import User
from frontdesk.services.user_service import UserService
from frontdesk.security.auth import get_current_user, create_access_token
from frontdesk.security.permissions import navigation

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """用户登录"""
    user = UserService(db).authenticate(data.email, data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="邮箱或密码错误"
        )
    return {
        'access_token': create_access_token(user.id, user.role),
        'token_type': 'bearer',
        'user': user,
        'navigation': navigation(user.role),
    }


@router.get("/me")
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """获取当前用户信息及可见导航"""
    return {
        'id': current_user.id,
        'email': current_user.email,
        'name': current_user.name,
        'role': current_user.role,
        'navigation': navigation(current_user.role),
    }
