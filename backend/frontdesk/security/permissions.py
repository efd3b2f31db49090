"""
集中定义功能区域与角色访问矩阵

与前端导航菜单保持一致。
"""
from typing import Dict, List
from frontdesk.models.ontology import Role

# 功能区域
DASHBOARD = "dashboard"
RESERVATIONS = "reservations"
GUESTS = "guests"
BILLING = "billing"
REPORTS = "reports"
PAYROLL = "payroll"
SETTINGS = "settings"

# 导航顺序
NAVIGATION_ORDER = [DASHBOARD, RESERVATIONS, GUESTS, BILLING, REPORTS, PAYROLL, SETTINGS]

ALL_ROLES = [Role.ADMIN, Role.FRONT_DESK, Role.ACCOUNTANT]
DESK_ROLES = [Role.ADMIN, Role.FRONT_DESK]
ADMIN_ONLY = [Role.ADMIN]

# 区域 -> 允许的角色
ACCESS_MATRIX: Dict[str, List[Role]] = {
    DASHBOARD: ALL_ROLES,
    RESERVATIONS: DESK_ROLES,
    GUESTS: DESK_ROLES,
    BILLING: ALL_ROLES,
    REPORTS: ALL_ROLES,
    PAYROLL: ADMIN_ONLY,
    SETTINGS: ADMIN_ONLY,
}


def can_access(role: Role, area: str) -> bool:
    return role in ACCESS_MATRIX.get(area, [])


def navigation(role: Role) -> List[str]:
    """角色可见的功能区域（按导航顺序）"""
    return [area for area in NAVIGATION_ORDER if can_access(role, area)]
