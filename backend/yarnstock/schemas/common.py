"""通用Schema工具"""
from decimal import Decimal
from typing import Any, Optional


def decimal_places(value: Decimal) -> int:
    """小数位数，如 Decimal("1.250") -> 3, Decimal("36") -> 0"""
    exponent = value.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


def check_weight(value: Optional[Decimal], label: str) -> Optional[Decimal]:
    """重量：不能为负，最多 3 位有效小数（末尾的 0 不计）"""
    if value is None:
        return value
    if value < 0:
        raise ValueError(f"{label}不能为负数")
    if decimal_places(value.normalize()) > 3:
        raise ValueError(f"{label}最多保留3位小数")
    return value


def to_float(v: Any) -> float:
    """数据库中的 Decimal/NULL 转为 float"""
    return float(v) if v is not None else 0.0


