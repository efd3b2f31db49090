"""
安全模块
"""
from frontdesk.security.auth import (
    get_password_hash, verify_password, create_access_token, decode_token,
    get_current_user, require_role, require_any_role, require_front_desk,
    require_payroll, require_admin
)
from frontdesk.security.permissions import navigation, can_access

__all__ = [
    "get_password_hash", "verify_password", "create_access_token", "decode_token",
    "get_current_user", "require_role", "require_any_role", "require_front_desk",
    "require_payroll", "require_admin", "navigation", "can_access",
]
