from __future__ import annotations

import datetime as dt
import unicodedata
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional

from manage_orders.labels import SIZE_LABELS
from manage_orders.models import SIZE_BIG, SIZE_SMALL, OrderItem
from manage_orders.services.orders import orders_in_range

TIER_BASE = 0
TIER_VARIATION = 1
TIER_ADD_ON = 2

_FINAL_LETTERS = str.maketrans('ךםןףץ', 'כמנפצ')


def hebrew_sort_key(text: str) -> str:
    """Collation key for Hebrew display names.

    Final letter forms sort with their base letter, vowel points are ignored,
    and Latin text compares case-insensitively.
    """
    decomposed = unicodedata.normalize('NFD', text or '')
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.translate(_FINAL_LETTERS).casefold()


@dataclass
class LiterQuantity:
    liter_size_id: int
    liter_label: str
    liter_size: float
    total_quantity: int = 0


@dataclass
class SizeQuantity:
    size_type: str
    size_label: str
    total_quantity: int = 0


@dataclass
class SummaryItem:
    key: str
    food_item_id: int
    food_name: str
    measurement_type: str
    liter_quantities: List[LiterQuantity] = field(default_factory=list)
    size_quantities: List[SizeQuantity] = field(default_factory=list)
    total_quantity: int = 0
    is_add_on: bool = False
    is_variation: bool = False
    is_preparation: bool = False
    parent_food_name: Optional[str] = None
    add_on_name: Optional[str] = None
    variation_name: Optional[str] = None
    preparation_name: Optional[str] = None

    @property
    def tier(self) -> int:
        if self.is_add_on:
            return TIER_ADD_ON
        if self.is_variation:
            return TIER_VARIATION
        return TIER_BASE

    @property
    def is_empty(self) -> bool:
        return not self.liter_quantities and not self.size_quantities and self.total_quantity <= 0

    def add(self, row: OrderItem) -> None:
        if row.liter_size_id:
            for lq in self.liter_quantities:
                if lq.liter_size_id == row.liter_size_id:
                    lq.total_quantity += row.quantity
                    return
            self.liter_quantities.append(LiterQuantity(
                liter_size_id=row.liter_size_id,
                liter_label=row.liter_size.label,
                liter_size=float(row.liter_size.size),
                total_quantity=row.quantity,
            ))
        elif row.size_type:
            for sq in self.size_quantities:
                if sq.size_type == row.size_type:
                    sq.total_quantity += row.quantity
                    return
            self.size_quantities.append(SizeQuantity(
                size_type=row.size_type,
                size_label=SIZE_LABELS.get(row.size_type, row.size_type),
                total_quantity=row.quantity,
            ))
        else:
            self.total_quantity += row.quantity


@dataclass
class CategorySummary:
    category_id: int
    category_name: str
    category_name_en: str
    items: List[SummaryItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        for item, raw in zip(self.items, data['items']):
            raw['tier'] = item.tier
        return data


def group_key(row: OrderItem) -> str:
    """Grouping key for one order item row.

    A row carrying more than one option is grouped by the first of add-on,
    variation, preparation.
    """
    if row.add_on_id:
        return f'{row.food_item_id}-addon-{row.add_on_id}'
    if row.variation_id:
        return f'{row.food_item_id}-var-{row.variation_id}'
    if row.preparation_id:
        return f'{row.food_item_id}-prep-{row.preparation_id}'
    return str(row.food_item_id)


def _new_group(key: str, row: OrderItem) -> SummaryItem:
    food = row.food_item
    if row.add_on_id:
        return SummaryItem(
            key=key, food_item_id=food.id,
            food_name=f'{row.add_on.name} (תוספת ל{food.name})',
            measurement_type=row.add_on.measurement_type,
            is_add_on=True, parent_food_name=food.name, add_on_name=row.add_on.name,
        )
    if row.variation_id:
        return SummaryItem(
            key=key, food_item_id=food.id,
            food_name=f'{food.name} - {row.variation.name}',
            measurement_type=food.measurement_type,
            is_variation=True, parent_food_name=food.name, variation_name=row.variation.name,
        )
    if row.preparation_id:
        return SummaryItem(
            key=key, food_item_id=food.id,
            food_name=f'{food.name} ({row.preparation.name})',
            measurement_type=food.measurement_type,
            is_preparation=True, parent_food_name=food.name, preparation_name=row.preparation.name,
        )
    return SummaryItem(key=key, food_item_id=food.id, food_name=food.name, measurement_type=food.measurement_type)


def _sort_group(item: SummaryItem) -> None:
    item.liter_quantities.sort(key=lambda lq: (lq.liter_size, lq.liter_label))
    order = {SIZE_BIG: 0, SIZE_SMALL: 1}
    item.size_quantities.sort(key=lambda sq: order.get(sq.size_type, 2))


def aggregate_items(rows: Iterable[OrderItem]) -> List[CategorySummary]:
    """Group order item rows per category and per item variant, summing quantities.

    Rows must have food_item/category, liter_size, add_on, variation and
    preparation loaded (see summary_rows()).
    """
    categories: Dict[int, CategorySummary] = {}
    category_order: Dict[int, tuple] = {}
    groups: Dict[int, Dict[str, SummaryItem]] = {}
    for row in rows:
        cat = row.food_item.category
        if cat.id not in categories:
            categories[cat.id] = CategorySummary(category_id=cat.id, category_name=cat.name, category_name_en=cat.name_en)
            category_order[cat.id] = (cat.sort_order, cat.id)
            groups[cat.id] = {}
        key = group_key(row)
        group = groups[cat.id].get(key)
        if group is None:
            group = _new_group(key, row)
            groups[cat.id][key] = group
        group.add(row)

    result = []
    for cat_id in sorted(categories, key=lambda c: category_order[c]):
        items = [g for g in groups[cat_id].values() if not g.is_empty]
        if not items:
            continue
        for g in items:
            _sort_group(g)
        items.sort(key=lambda g: (g.tier, hebrew_sort_key(g.food_name)))
        summary = categories[cat_id]
        summary.items = items
        result.append(summary)
    return result


def summary_rows(orders) -> Iterable[OrderItem]:
    return (
        OrderItem.objects.filter(order__in=orders)
        .select_related('food_item__category', 'liter_size', 'add_on', 'variation', 'preparation')
        .order_by('id')
    )


def build_summary(
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    customer_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> List[CategorySummary]:
    """Kitchen quantities for every order dated within [from_date, to_date].

    Store errors propagate (DatabaseError); callers decide how to report them.
    """
    orders = orders_in_range(from_date, to_date, customer_name=customer_name, phone=phone)
    return aggregate_items(summary_rows(orders))


def filter_summary(summaries: List[CategorySummary], category: Optional[str] = None, search: Optional[str] = None) -> List[CategorySummary]:
    """Narrow a computed summary to one category (name_en) and/or a name substring."""
    result = []
    needle = hebrew_sort_key(search.strip()) if search and search.strip() else None
    for cat in summaries:
        if category and cat.category_name_en != category:
            continue
        items = cat.items
        if needle:
            items = [i for i in items if needle in hebrew_sort_key(i.food_name)]
        if items:
            result.append(CategorySummary(cat.category_id, cat.category_name, cat.category_name_en, items))
    return result
