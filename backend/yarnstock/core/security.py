"""
安全相关工具

- 密码哈希（bcrypt）
- JWT 令牌生成与解析，令牌中的 type 区分用途：auth（登录）/ register（邀请注册）/ reset（重置密码）
"""

import hashlib
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from yarnstock.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_TYPE_AUTH = "auth"
TOKEN_TYPE_REGISTER = "register"
TOKEN_TYPE_RESET = "reset"

_TOKEN_EXPIRE_MINUTES = {
    TOKEN_TYPE_AUTH: settings.AUTH_TOKEN_EXPIRE_MINUTES,
    TOKEN_TYPE_REGISTER: settings.REGISTER_TOKEN_EXPIRE_MINUTES,
    TOKEN_TYPE_RESET: settings.RESET_TOKEN_EXPIRE_MINUTES,
}


def get_password_hash(password: str) -> str:
    """生成密码哈希"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """校验密码，哈希为空（邀请中的用户）时一律失败"""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("密码哈希格式无效")
        return False


def create_token(email: str, token_type: str, expires_minutes: Optional[int] = None) -> str:
    """生成指定用途的令牌"""
    if expires_minutes is None:
        expires_minutes = _TOKEN_EXPIRE_MINUTES[token_type]
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    payload = {"email": email, "type": token_type, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """解析令牌，签名错误或已过期时返回 None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("email") or not payload.get("type"):
        return None
    return payload


def hash_token(token: str) -> str:
    """令牌的 SHA-256 摘要，用于记录已使用的重置令牌"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
