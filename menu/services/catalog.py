from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from django.db import DatabaseError, transaction
from django.db.models import Max, Q

from catering.results import OperationResult
from manage_orders.labels import ERRORS
from menu.models import (
    MEASUREMENT_CHOICES, MEASUREMENT_LITERS, MEASUREMENT_NONE, MEASUREMENT_SIZE,
    Category, FoodItem, FoodItemAddOn, FoodItemPreparation, FoodItemVariation, LiterSize,
)

logger = logging.getLogger(__name__)

MEASUREMENT_TYPES = {value for value, _ in MEASUREMENT_CHOICES}

# Current salad list for the salads category, in menu order.
DEFAULT_SALAD_NAMES = [
    'מטבוחה',
    'חציל מטוגן',
    'כרוב סגול',
    'חציל זעלוק',
    'חציל בלאדי',
    'סלק',
    'גזר מבושל',
    'גזר חי',
    'פלפל חריף',
    'חומוס',
    'טחינה',
    'ערבי',
    'ירקות',
    'חסה',
    'כרוב',
    'חמוצי הבית',
    'זיתים',
    'מלפפון בשמיר',
    'קונסולו',
    'כרוב אדום במיונז',
    'כרוב אדום חמוץ',
    'תירס ופתריות',
    'פול',
    'מיונז',
    'טאבולה ירוק',
    "לימון צ'רמלה",
    'ירק פיצוחים',
]

OPTION_MODELS = {
    'preparation': FoodItemPreparation,
    'variation': FoodItemVariation,
    'add_on': FoodItemAddOn,
}

FOOD_ITEM_FIELDS = {'name', 'category', 'measurement_type', 'sort_order', 'portion_multiplier', 'portion_unit', 'price'}
OPTION_FIELDS = {'name', 'sort_order', 'measurement_type'}


def default_measurement_type(category: Optional[Category], has_liters: bool = False) -> str:
    """Measurement type for an item that did not specify one.

    Salads are sold by liter and sides by big/small; anything else falls back
    to the legacy has_liters flag and finally to a plain count.
    """
    if category is not None:
        if category.name_en == 'salads':
            return MEASUREMENT_LITERS
        if category.name_en == 'sides':
            return MEASUREMENT_SIZE
    return MEASUREMENT_LITERS if has_liters else MEASUREMENT_NONE


def _next_sort_order(qs) -> int:
    current = qs.aggregate(m=Max('sort_order'))['m']
    return (current or 0) + 1


def get_categories() -> List[Category]:
    return list(Category.objects.order_by('sort_order', 'id'))


def get_food_items(category_id: Optional[int] = None, active_only: bool = False) -> List[FoodItem]:
    qs = FoodItem.objects.select_related('category').order_by('category__sort_order', 'sort_order', 'id')
    if category_id is not None:
        qs = qs.filter(category_id=category_id)
    if active_only:
        qs = qs.filter(is_active=True)
    return list(qs)


def get_liter_sizes(food_item: Optional[FoodItem] = None) -> List[LiterSize]:
    """Global liter sizes, plus the custom sizes of ``food_item`` when given."""
    cond = Q(food_item__isnull=True)
    if food_item is not None:
        cond |= Q(food_item=food_item)
    return list(LiterSize.objects.filter(cond).order_by('size', 'sort_order', 'id'))


def _serialize_liter(ls: LiterSize) -> dict:
    return {'id': ls.id, 'size': float(ls.size), 'label': ls.label, 'sort_order': ls.sort_order, 'is_custom': ls.is_custom}


def _serialize_option(opt, with_measurement: bool = False) -> dict:
    data = {'id': opt.id, 'name': opt.name, 'sort_order': opt.sort_order, 'is_active': opt.is_active}
    if with_measurement:
        data['measurement_type'] = opt.measurement_type
    return data


def serialize_food_item(item: FoodItem, active_only: bool = True) -> dict:
    def _opts(manager):
        objs = manager.all()
        return [o for o in objs if o.is_active or not active_only]

    return {
        'id': item.id,
        'category_id': item.category_id,
        'name': item.name,
        'measurement_type': item.measurement_type,
        'has_liters': item.has_liters,
        'is_active': item.is_active,
        'sort_order': item.sort_order,
        'portion_multiplier': item.portion_multiplier,
        'portion_unit': item.portion_unit,
        'price': str(item.price) if item.price is not None else None,
        'preparations': [_serialize_option(p) for p in _opts(item.preparations)],
        'variations': [_serialize_option(v) for v in _opts(item.variations)],
        'add_ons': [_serialize_option(a, with_measurement=True) for a in _opts(item.add_ons)],
        'custom_liter_sizes': [_serialize_liter(ls) for ls in item.custom_liter_sizes.all()],
    }


def catalog_snapshot(active_only: bool = True) -> dict:
    """Everything the order form needs in one structure.

    { liter_sizes: [...], categories: [ {id, name, name_en, max_selection, sort_order, items: [...]}, ... ] }
    """
    items_qs = FoodItem.objects.order_by('sort_order', 'id').prefetch_related(
        'preparations', 'variations', 'add_ons', 'custom_liter_sizes',
    )
    if active_only:
        items_qs = items_qs.filter(is_active=True)
    by_category = {}
    for item in items_qs:
        by_category.setdefault(item.category_id, []).append(serialize_food_item(item, active_only=active_only))
    categories = []
    for cat in Category.objects.order_by('sort_order', 'id'):
        categories.append({
            'id': cat.id,
            'name': cat.name,
            'name_en': cat.name_en,
            'max_selection': cat.max_selection,
            'sort_order': cat.sort_order,
            'items': by_category.get(cat.id, []),
        })
    return {
        'liter_sizes': [_serialize_liter(ls) for ls in LiterSize.objects.filter(food_item__isnull=True).order_by('size', 'sort_order')],
        'categories': categories,
    }


# ---- Food items ----

def create_food_item(name: str, category: Category, measurement_type: Optional[str] = None, **extra) -> OperationResult:
    name = (name or '').strip()
    if not name:
        return OperationResult.fail('שם הפריט הוא שדה חובה')
    if measurement_type and measurement_type not in MEASUREMENT_TYPES:
        return OperationResult.fail('סוג מדידה לא תקין')
    fields = {k: v for k, v in extra.items() if k in FOOD_ITEM_FIELDS}
    try:
        item = FoodItem.objects.create(
            name=name,
            category=category,
            measurement_type=measurement_type or default_measurement_type(category),
            sort_order=_next_sort_order(FoodItem.objects.filter(category=category)),
            **fields,
        )
    except DatabaseError:
        logger.exception('Failed to create food item %r', name)
        return OperationResult.fail('שגיאה ביצירת פריט')
    logger.info('Created food item %s (%s) in %s', item.pk, item.name, category.name_en)
    return OperationResult.ok(item)


def update_food_item(item_id: int, **fields) -> OperationResult:
    try:
        item = FoodItem.objects.get(pk=item_id)
    except FoodItem.DoesNotExist:
        return OperationResult.fail('פריט לא נמצא')
    changed = []
    for key, value in fields.items():
        if key not in FOOD_ITEM_FIELDS:
            continue
        if key == 'measurement_type' and value not in MEASUREMENT_TYPES:
            return OperationResult.fail('סוג מדידה לא תקין')
        if key == 'name':
            value = (value or '').strip()
            if not value:
                return OperationResult.fail('שם הפריט הוא שדה חובה')
        setattr(item, key, value)
        changed.append(key)
    if not changed:
        return OperationResult.ok(item)
    try:
        item.save(update_fields=changed)
    except DatabaseError:
        logger.exception('Failed to update food item %s', item_id)
        return OperationResult.fail('שגיאה בעדכון פריט')
    return OperationResult.ok(item)


def _set_food_item_active(item_id: int, active: bool) -> OperationResult:
    updated = FoodItem.objects.filter(pk=item_id).update(is_active=active)
    if not updated:
        return OperationResult.fail('פריט לא נמצא')
    logger.info('Food item %s is_active=%s', item_id, active)
    return OperationResult.ok()


def deactivate_food_item(item_id: int) -> OperationResult:
    """Soft delete: the item disappears from the order form, old orders keep it."""
    return _set_food_item_active(item_id, False)


def restore_food_item(item_id: int) -> OperationResult:
    return _set_food_item_active(item_id, True)


def food_item_in_orders(item_id: int) -> bool:
    from manage_orders.models import OrderItem
    return OrderItem.objects.filter(food_item_id=item_id).exists()


def delete_food_item_permanently(item_id: int) -> OperationResult:
    if food_item_in_orders(item_id):
        return OperationResult.fail(ERRORS['item_in_orders'])
    try:
        deleted, _ = FoodItem.objects.filter(pk=item_id).delete()
    except DatabaseError:
        logger.exception('Failed to delete food item %s', item_id)
        return OperationResult.fail('שגיאה במחיקת פריט')
    if not deleted:
        return OperationResult.fail('פריט לא נמצא')
    return OperationResult.ok()


# ---- Preparations / variations / add-ons ----

def create_option(kind: str, food_item: FoodItem, name: str, measurement_type: Optional[str] = None) -> OperationResult:
    model = OPTION_MODELS[kind]
    name = (name or '').strip()
    if not name:
        return OperationResult.fail('שם הוא שדה חובה')
    fields = {
        'parent_food_item': food_item,
        'name': name,
        'sort_order': _next_sort_order(model.objects.filter(parent_food_item=food_item)),
    }
    if kind == 'add_on':
        if measurement_type and measurement_type not in MEASUREMENT_TYPES:
            return OperationResult.fail('סוג מדידה לא תקין')
        fields['measurement_type'] = measurement_type or MEASUREMENT_NONE
    try:
        opt = model.objects.create(**fields)
    except DatabaseError:
        logger.exception('Failed to create %s for food item %s', kind, food_item.pk)
        return OperationResult.fail('שגיאה ביצירה')
    return OperationResult.ok(opt)


def update_option(kind: str, option_id: int, **fields) -> OperationResult:
    model = OPTION_MODELS[kind]
    try:
        opt = model.objects.get(pk=option_id)
    except model.DoesNotExist:
        return OperationResult.fail('לא נמצא')
    changed = []
    for key, value in fields.items():
        if key not in OPTION_FIELDS:
            continue
        if key == 'measurement_type':
            if kind != 'add_on':
                continue
            if value not in MEASUREMENT_TYPES:
                return OperationResult.fail('סוג מדידה לא תקין')
        if key == 'name':
            value = (value or '').strip()
            if not value:
                return OperationResult.fail('שם הוא שדה חובה')
        setattr(opt, key, value)
        changed.append(key)
    if changed:
        opt.save(update_fields=changed)
    return OperationResult.ok(opt)


def set_option_active(kind: str, option_id: int, active: bool) -> OperationResult:
    updated = OPTION_MODELS[kind].objects.filter(pk=option_id).update(is_active=active)
    if not updated:
        return OperationResult.fail('לא נמצא')
    return OperationResult.ok()


def option_in_orders(kind: str, option_id: int) -> bool:
    from manage_orders.models import OrderItem
    return OrderItem.objects.filter(**{f'{kind}_id': option_id}).exists()


def delete_option_permanently(kind: str, option_id: int) -> OperationResult:
    if option_in_orders(kind, option_id):
        return OperationResult.fail(ERRORS['item_in_orders'])
    deleted, _ = OPTION_MODELS[kind].objects.filter(pk=option_id).delete()
    if not deleted:
        return OperationResult.fail('לא נמצא')
    return OperationResult.ok()


# ---- Custom liter sizes ----

def add_custom_liter_size(food_item: FoodItem, size: Decimal, label: str = '') -> OperationResult:
    try:
        size = Decimal(str(size))
    except ArithmeticError:
        return OperationResult.fail('גודל לא תקין')
    if size <= 0:
        return OperationResult.fail('גודל לא תקין')
    label = (label or '').strip() or f'{size.normalize():f}L'
    ls = LiterSize.objects.create(
        food_item=food_item,
        size=size,
        label=label,
        sort_order=_next_sort_order(LiterSize.objects.filter(food_item=food_item)),
    )
    return OperationResult.ok(ls)


def remove_custom_liter_size(liter_size_id: int) -> OperationResult:
    from manage_orders.models import OrderItem
    try:
        ls = LiterSize.objects.get(pk=liter_size_id, food_item__isnull=False)
    except LiterSize.DoesNotExist:
        return OperationResult.fail('לא נמצא')
    if OrderItem.objects.filter(liter_size=ls).exists():
        return OperationResult.fail(ERRORS['item_in_orders'])
    ls.delete()
    return OperationResult.ok()


# ---- Bulk replace ----

def replace_category_items(name_en: str, names: Iterable[str], measurement_type: str = MEASUREMENT_LITERS) -> OperationResult:
    """Replace every item of a category with ``names`` (in order).

    Add-ons of the current items go first, then the items. Items that old
    orders still reference are deactivated instead of deleted. New items get
    sort_order 1..n. Runs in one transaction; ``obj`` is the number of items
    inserted.
    """
    names = [n.strip() for n in names if n and n.strip()]
    if measurement_type not in MEASUREMENT_TYPES:
        return OperationResult.fail('סוג מדידה לא תקין')
    try:
        category = Category.objects.get(name_en=name_en)
    except Category.DoesNotExist:
        return OperationResult.fail(f'קטגוריה לא נמצאה: {name_en}')
    from manage_orders.models import OrderItem
    try:
        with transaction.atomic():
            existing = FoodItem.objects.filter(category=category)
            used_ids = set(OrderItem.objects.filter(food_item__in=existing).values_list('food_item_id', flat=True))
            FoodItemAddOn.objects.filter(parent_food_item__in=existing).exclude(parent_food_item_id__in=used_ids).delete()
            existing.exclude(pk__in=used_ids).delete()
            FoodItem.objects.filter(pk__in=used_ids).update(is_active=False)
            FoodItem.objects.bulk_create([
                FoodItem(category=category, name=name, measurement_type=measurement_type, is_active=True, sort_order=idx)
                for idx, name in enumerate(names, start=1)
            ])
    except DatabaseError:
        logger.exception('Bulk replace of category %s failed', name_en)
        return OperationResult.fail('שגיאה בעדכון הקטגוריה')
    logger.info('Replaced items of %s: %d inserted, %d kept inactive', name_en, len(names), len(used_ids))
    return OperationResult.ok(len(names))
