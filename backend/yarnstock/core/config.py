from typing import List, Optional, Union
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    PROJECT_NAME: str = "纱线库存系统"
    API_V1_STR: str = "/api"
    # 重要：生产环境必须通过 .env 文件或环境变量设置此值
    SECRET_KEY: str = Field(
        default="dev-only-secret-key-please-change-in-production",
        description="JWT密钥，生产环境必须修改"
    )
    JWT_ALGORITHM: str = "HS256"

    # 令牌有效期
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 登录令牌 30天
    REGISTER_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 注册邀请 7天
    RESET_TOKEN_EXPIRE_MINUTES: int = 60  # 重置密码 1小时

    # CORS配置
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # 数据库配置
    SQLITE_DATABASE_URI: str = "sqlite:///./yarn_stock.db"

    # 邀请/重置邮件中的前端地址
    BASE_URL: str = "http://localhost:3000"
    COMPANY_NAME: str = "Inventory"
    INVITER_NAME: str = "Admin"

    # 首个管理员邮箱，未注册时自动发送邀请
    DEFAULT_USER_EMAIL: Optional[str] = None

    # 邮件配置（未配置 SMTP_HOST 时只记录日志，不发送）
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM: Optional[str] = None

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    class Config:
        case_sensitive = True
        env_file = ".env"

    @property
    def async_database_uri(self) -> str:
        return self.SQLITE_DATABASE_URI.replace("sqlite:///", "sqlite+aiosqlite:///")


settings = Settings()
logger.info(f"加载配置: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
