"""
日期工具
"""
from datetime import date, datetime
from typing import Optional, Union

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def format_to_ddmmyyyy(value: Optional[Union[str, date]]) -> str:
    """格式化为 DD/MM/YYYY，空值返回 N/A，无法解析时原样返回"""
    if not value:
        return "N/A"
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")

    parts = value.split("-")
    if len(parts) == 3:
        # YYYY-MM-DD
        return f"{parts[2]}/{parts[1]}/{parts[0]}"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.strftime("%d/%m/%Y")


def nights_between(check_in: date, check_out: date) -> int:
    """间夜数，至少按 1 晚计"""
    return max(1, (check_out - check_in).days)


def current_month_name(today: Optional[date] = None) -> str:
    """当前月份英文名"""
    today = today or date.today()
    return MONTH_NAMES[today.month - 1]
