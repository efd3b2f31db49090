"""
应用配置
从环境变量读取配置，支持 OpenAI 兼容 API
"""
import os
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Hotel Fountain Front Desk"
    HOTEL_NAME: str = "Hotel Fountain"
    CURRENCY_LABEL: str = "Tk."
    DEBUG: bool = False

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./frontdesk.db"

    # JWT 配置
    SECRET_KEY: str = "frontdesk-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # 默认管理员（用户表为空时自动创建）
    DEFAULT_ADMIN_EMAIL: str = "admin@hotelfountain.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_NAME: str = "System Administrator"

    # LLM 配置 (OpenAI 兼容 API)
    OPENAI_API_KEY: Optional[str] = os.environ.get("OPENAI_API_KEY")
    OPENAI_BASE_URL: str = os.environ.get(
        "OPENAI_BASE_URL",
        "https://api.openai.com/v1"
    )
    LLM_FAST_MODEL: str = os.environ.get("LLM_FAST_MODEL", "gpt-4o-mini")
    LLM_ANALYTICAL_MODEL: str = os.environ.get("LLM_ANALYTICAL_MODEL", "gpt-4o")
    LLM_TIMEOUT: float = 30.0

    # LLM 功能开关
    ENABLE_LLM: bool = os.environ.get("ENABLE_LLM", "true").lower() == "true"

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
