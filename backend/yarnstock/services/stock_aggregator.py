"""
库存汇总服务

把同一类别下的入库记录、出库记录按批号（lot_no）归并，计算每个批次的剩余重量和剩余箱数。
纯计算，不访问数据库，调用方负责按类别筛选好记录。

剩余箱数按重量比例估算：floor(剩余重量 / 平均每箱重量)，不是实际清点的箱数。
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

ZERO = Decimal("0")
WEIGHT_QUANT = Decimal("0.001")


def to_decimal(value: Any) -> Decimal:
    """数据库/JSON 的数值统一转为 Decimal，None 视为 0"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_weight(value: Decimal) -> Decimal:
    """重量保留 3 位小数"""
    return value.quantize(WEIGHT_QUANT, rounding=ROUND_HALF_UP)


@dataclass
class LotBalance:
    """单个批次的汇总"""
    lot_no: str
    total_boxes: int = 0
    total_weight: Decimal = ZERO
    used_weight: Decimal = ZERO

    @property
    def available_weight(self) -> Decimal:
        remaining = self.total_weight - self.used_weight
        return round_weight(remaining if remaining > ZERO else ZERO)

    @property
    def available_boxes(self) -> int:
        if self.total_weight <= ZERO or self.total_boxes <= 0:
            return 0
        # 等价于 剩余重量 / (总重量 / 总箱数)，先乘后除避免精度损失
        boxes = (self.available_weight * self.total_boxes / self.total_weight).to_integral_value(
            rounding=ROUND_FLOOR
        )
        return max(0, int(boxes))


@dataclass
class AvailableLot:
    lot_no: str
    available_boxes: int
    available_weight_in_kg: Decimal


@dataclass
class LotTotals:
    total_weight: Decimal = ZERO
    available_weight: Decimal = ZERO


@dataclass
class LotSummary:
    lot_no: str
    total_weight: Decimal
    used_weight: Decimal
    available_weight: Decimal


@dataclass
class CategorySummary:
    category_id: int
    category_name: str
    total_weight: Decimal
    available_weight: Decimal
    lots: List[LotSummary] = field(default_factory=list)


def _get(entry: Any, name: str) -> Any:
    """同时支持 ORM 对象和字典"""
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def group_lots(in_entries: Iterable[Any], ex_entries: Iterable[Any]) -> Dict[str, LotBalance]:
    """
    按批号归并入库/出库记录

    出库记录只累加到已有入库记录的批次上，找不到入库批次的出库记录直接忽略。
    """
    lots: Dict[str, LotBalance] = {}

    for entry in in_entries:
        lot_no = _get(entry, "lot_no")
        lot = lots.get(lot_no)
        if lot is None:
            lot = lots[lot_no] = LotBalance(lot_no=lot_no)
        lot.total_boxes += int(_get(entry, "no_of_boxes") or 0)
        lot.total_weight += to_decimal(_get(entry, "weight_in_kg"))

    for entry in ex_entries:
        lot = lots.get(_get(entry, "lot_no"))
        if lot is None:
            continue
        lot.used_weight += to_decimal(_get(entry, "taking_weight_in_kg"))

    return lots


def compute_available_lots(in_entries: Iterable[Any], ex_entries: Iterable[Any]) -> List[AvailableLot]:
    """
    计算可出库的批次

    剩余箱数和剩余重量都为 0 的批次不返回，结果按批号字符串升序（"LOT10" 排在 "LOT2" 前）。
    """
    result = []
    for lot in group_lots(in_entries, ex_entries).values():
        boxes = lot.available_boxes
        weight = lot.available_weight
        if boxes > 0 or weight > ZERO:
            result.append(AvailableLot(
                lot_no=lot.lot_no,
                available_boxes=boxes,
                available_weight_in_kg=weight,
            ))
    result.sort(key=lambda item: item.lot_no)
    return result


def compute_lot_totals(in_entries: Iterable[Any], ex_entries: Iterable[Any]) -> LotTotals:
    """类别合计：总入库重量和各批次剩余重量之和（不排除已用完的批次）"""
    totals = LotTotals()
    for lot in group_lots(in_entries, ex_entries).values():
        totals.total_weight += lot.total_weight
        totals.available_weight += lot.available_weight
    totals.total_weight = round_weight(totals.total_weight)
    totals.available_weight = round_weight(totals.available_weight)
    return totals


def summarize_categories(
    categories: Iterable[Any],
    in_entries: Iterable[Any],
    ex_entries: Iterable[Any],
) -> List[CategorySummary]:
    """首页看板：按类别汇总，只包含有入库记录的类别，按类别名称排序"""
    in_by_category: Dict[Any, List[Any]] = {}
    for entry in in_entries:
        in_by_category.setdefault(_get(entry, "category_id"), []).append(entry)
    ex_by_category: Dict[Any, List[Any]] = {}
    for entry in ex_entries:
        ex_by_category.setdefault(_get(entry, "category_id"), []).append(entry)

    summaries = []
    for category in categories:
        category_id = _get(category, "id")
        category_in = in_by_category.get(category_id)
        if not category_in:
            continue
        category_ex = ex_by_category.get(category_id, [])

        totals = compute_lot_totals(category_in, category_ex)
        lots = [
            LotSummary(
                lot_no=lot.lot_no,
                total_weight=round_weight(lot.total_weight),
                used_weight=round_weight(lot.used_weight),
                available_weight=lot.available_weight,
            )
            for lot in group_lots(category_in, category_ex).values()
        ]
        lots.sort(key=lambda item: item.lot_no)

        summaries.append(CategorySummary(
            category_id=category_id,
            category_name=_get(category, "name") or "",
            total_weight=totals.total_weight,
            available_weight=totals.available_weight,
            lots=lots,
        ))

    summaries.sort(key=lambda item: item.category_name)
    return summaries


def summarize_lot(
    lot_no: str,
    in_entries: Iterable[Any],
    ex_entries: Iterable[Any],
    category_id: Optional[int] = None,
) -> LotTotals:
    """
    批次详情：总入库重量和剩余重量（不低于 0）

    不指定类别时合计所有类别下的同名批次，出库记录只计入有入库记录的类别。
    """
    def matches(entry: Any) -> bool:
        if _get(entry, "lot_no") != lot_no:
            return False
        return category_id is None or _get(entry, "category_id") == category_id

    lot_in = [e for e in in_entries if matches(e)]
    stocked_categories = {_get(e, "category_id") for e in lot_in}
    lot_ex = [
        e for e in ex_entries
        if matches(e) and _get(e, "category_id") in stocked_categories
    ]

    total = sum((to_decimal(_get(e, "weight_in_kg")) for e in lot_in), ZERO)
    used = sum((to_decimal(_get(e, "taking_weight_in_kg")) for e in lot_ex), ZERO)
    remaining = total - used
    return LotTotals(
        total_weight=round_weight(total),
        available_weight=round_weight(remaining if remaining > ZERO else ZERO),
    )
