"""Order form payload handling.

The order form sends a nested selection per category::

    {
      "customer_name": "...", "phone": "...", "phone_alt": "", "address": "...",
      "order_date": "2025-01-31", "order_time": "12:00", "customer_time": "12:30",
      "notes": "", "total_portions": 40, "price_per_portion": "95", "delivery_fee": "50",
      "selections": {
        "salads": [ {"food_item_id": 1, "liters": [{"liter_size_id": 2, "quantity": 1}],
                     "add_ons": [{"add_on_id": 4, "quantity": 1, "liters": []}], "note": ""} ],
        "sides":  [ {"food_item_id": 9, "size_big": 1, "size_small": 2,
                     "variations": [{"variation_id": 3, "size_big": 1, "size_small": 0}]} ],
        "mains":  [ {"food_item_id": 12, "quantity": 2, "preparation_id": 5, "note": ""} ]
      },
      "extra_items": [ {"name": "...", "quantity": 1, "price": "120", "variations": []} ]
    }

and is flattened here into one ItemRow per populated quantity dimension.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from manage_orders.labels import LABELS, VALIDATION
from manage_orders.models import SIZE_BIG, SIZE_SMALL, STATUS_ACTIVE, STATUS_CHOICES
from menu.models import Category, FoodItem, LiterSize

STATUSES = {value for value, _ in STATUS_CHOICES}


class OrderValidationError(ValueError):
    """Raised when an order payload cannot be saved. ``messages`` are Hebrew."""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__('; '.join(self.messages))


@dataclass
class ItemRow:
    food_item_id: int
    quantity: int
    liter_size_id: Optional[int] = None
    size_type: Optional[str] = None
    price: Optional[Decimal] = None
    item_note: str = ''
    preparation_id: Optional[int] = None
    variation_id: Optional[int] = None
    add_on_id: Optional[int] = None


@dataclass
class ExtraVariationInput:
    name: str
    variation_id: Optional[int] = None
    size_big: int = 0
    size_small: int = 0


@dataclass
class ExtraItemInput:
    name: str
    quantity: int = 0
    size_big: int = 0
    size_small: int = 0
    price: Decimal = Decimal('0')
    note: str = ''
    preparation_name: str = ''
    source_category: str = ''
    source_food_item_id: Optional[int] = None
    variations: List[ExtraVariationInput] = field(default_factory=list)


@dataclass
class OrderInput:
    phone: str
    order_date: dt.date
    customer_name: str = ''
    phone_alt: str = ''
    address: str = ''
    order_time: Optional[dt.time] = None
    customer_time: Optional[dt.time] = None
    notes: str = ''
    total_portions: Optional[int] = None
    price_per_portion: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None
    status: str = STATUS_ACTIVE
    selections: Dict[str, list] = field(default_factory=dict)
    extra_items: List[ExtraItemInput] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict) -> 'OrderInput':
        if not isinstance(payload, dict):
            raise OrderValidationError(VALIDATION['required'])
        errors = []
        phone = _clean_str(payload.get('phone'))
        if not phone:
            errors.append(VALIDATION['phone_required'])
        elif not _looks_like_phone(phone):
            errors.append(VALIDATION['invalid_phone'])
        try:
            order_date = _parse_date(payload.get('order_date'))
        except ValueError:
            order_date = None
        if order_date is None:
            errors.append(f"{LABELS['order_form']['date']}: {VALIDATION['required']}")
        status = _clean_str(payload.get('status')) or STATUS_ACTIVE
        if status not in STATUSES:
            errors.append(VALIDATION['invalid_status'])
        selections = payload.get('selections') or {}
        if not isinstance(selections, dict) or any(not isinstance(v, list) for v in selections.values()):
            errors.append(VALIDATION['unknown_item'])
            selections = {}
        try:
            order_time = _parse_time(payload.get('order_time'))
            customer_time = _parse_time(payload.get('customer_time'))
            total_portions = _parse_int(payload.get('total_portions'), allow_none=True)
            price_per_portion = _parse_decimal(payload.get('price_per_portion'))
            delivery_fee = _parse_decimal(payload.get('delivery_fee'))
            extra_items = [_parse_extra(e) for e in (payload.get('extra_items') or [])]
        except (ValueError, TypeError, InvalidOperation) as exc:
            errors.append(str(exc) or VALIDATION['required'])
            order_time = customer_time = None
            total_portions = price_per_portion = delivery_fee = None
            extra_items = []
        if errors:
            raise OrderValidationError(errors)
        return cls(
            phone=phone,
            order_date=order_date,
            customer_name=_clean_str(payload.get('customer_name')),
            phone_alt=_clean_str(payload.get('phone_alt')),
            address=_clean_str(payload.get('address')),
            order_time=order_time,
            customer_time=customer_time,
            notes=_clean_str(payload.get('notes')),
            total_portions=total_portions,
            price_per_portion=price_per_portion,
            delivery_fee=delivery_fee,
            status=status,
            selections=selections,
            extra_items=extra_items,
        )


def _clean_str(value) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _looks_like_phone(phone: str) -> bool:
    digits = [c for c in phone if c.isdigit()]
    allowed = set('0123456789+-() ')
    return len(digits) >= 7 and all(c in allowed for c in phone)


def _parse_date(value) -> Optional[dt.date]:
    if isinstance(value, dt.date):
        return value
    value = _clean_str(value)
    if not value:
        return None
    return dt.date.fromisoformat(value[:10])


def _parse_time(value) -> Optional[dt.time]:
    if isinstance(value, dt.time):
        return value
    value = _clean_str(value)
    if not value:
        return None
    try:
        return dt.time.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{LABELS['order_form']['time']}: {value}")


def _parse_int(value, allow_none: bool = False) -> Optional[int]:
    if value is None or value == '':
        return None if allow_none else 0
    number = int(value)
    if number < 0:
        raise ValueError(f"{VALIDATION['invalid_quantity']}: {value}")
    return number


def _parse_id(value) -> Optional[int]:
    """Id from the payload, or None when missing or not a number."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_decimal(value) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    number = Decimal(str(value))
    if number < 0:
        raise ValueError(f'מחיר לא תקין: {value}')
    return number


def _parse_extra(raw: dict) -> ExtraItemInput:
    name = _clean_str(raw.get('name'))
    if not name:
        raise ValueError(VALIDATION['required'])
    return ExtraItemInput(
        name=name,
        quantity=_parse_int(raw.get('quantity')),
        size_big=_parse_int(raw.get('size_big')),
        size_small=_parse_int(raw.get('size_small')),
        price=_parse_decimal(raw.get('price')) or Decimal('0'),
        note=_clean_str(raw.get('note')),
        preparation_name=_clean_str(raw.get('preparation_name')),
        source_category=_clean_str(raw.get('source_category')),
        source_food_item_id=_parse_int(raw.get('source_food_item_id'), allow_none=True),
        variations=[
            ExtraVariationInput(
                name=_clean_str(v.get('name')),
                variation_id=_parse_int(v.get('variation_id'), allow_none=True),
                size_big=_parse_int(v.get('size_big')),
                size_small=_parse_int(v.get('size_small')),
            )
            for v in (raw.get('variations') or [])
        ],
    )


def is_selected(entry: dict) -> bool:
    # Entries without an explicit flag count as selected.
    return bool(entry.get('selected', True))


def _liter_rows(entry_liters, **common) -> List[ItemRow]:
    rows = []
    for liter in entry_liters or []:
        qty = _parse_int(liter.get('quantity'))
        if qty > 0:
            rows.append(ItemRow(quantity=qty, liter_size_id=int(liter['liter_size_id']), **common))
    return rows


def _size_rows(entry: dict, **common) -> List[ItemRow]:
    rows = []
    for size_type, key in ((SIZE_BIG, 'size_big'), (SIZE_SMALL, 'size_small')):
        qty = _parse_int(entry.get(key))
        if qty > 0:
            rows.append(ItemRow(quantity=qty, size_type=size_type, **common))
    return rows


def entry_rows(entry: dict) -> List[ItemRow]:
    """Rows for one selected food item entry; zero quantities are dropped.

    The entry note and price land on the first row only.
    """
    food_item_id = int(entry['food_item_id'])
    preparation_id = _parse_int(entry.get('preparation_id'), allow_none=True)
    base = {'food_item_id': food_item_id, 'preparation_id': preparation_id}

    rows = _liter_rows(entry.get('liters'), **base)
    rows += _size_rows(entry, **base)
    qty = _parse_int(entry.get('quantity'))
    if qty > 0:
        rows.append(ItemRow(quantity=qty, **base))

    for var in entry.get('variations') or []:
        common = {'food_item_id': food_item_id, 'variation_id': int(var['variation_id'])}
        rows += _size_rows(var, **common)
        var_qty = _parse_int(var.get('quantity'))
        if var_qty > 0:
            rows.append(ItemRow(quantity=var_qty, **common))

    for add_on in entry.get('add_ons') or []:
        common = {'food_item_id': food_item_id, 'add_on_id': int(add_on['add_on_id'])}
        add_qty = _parse_int(add_on.get('quantity'))
        if add_qty > 0:
            rows.append(ItemRow(quantity=add_qty, **common))
        rows += _liter_rows(add_on.get('liters'), **common)

    if rows:
        note = _clean_str(entry.get('note'))
        if note:
            rows[0].item_note = note
        price = _parse_decimal(entry.get('price'))
        if price is not None:
            rows[0].price = price
    return rows


def flatten_selection(selections: Dict[str, list]) -> List[ItemRow]:
    rows: List[ItemRow] = []
    for entries in selections.values():
        for entry in entries:
            if not is_selected(entry):
                continue
            try:
                rows.extend(entry_rows(entry))
            except (KeyError, TypeError, ValueError, InvalidOperation, AttributeError) as exc:
                raise OrderValidationError(str(exc) or VALIDATION['invalid_quantity'])
    return rows


def validate_selection(selections: Dict[str, list]) -> None:
    """Check category limits and that every referenced id belongs to its item.

    Raises OrderValidationError with all problems found.
    """
    errors = []
    categories = {c.name_en: c for c in Category.objects.all()}
    item_ids = set()
    for entries in selections.values():
        for entry in entries:
            try:
                item_ids.add(int(entry['food_item_id']))
            except (KeyError, TypeError, ValueError):
                errors.append(VALIDATION['unknown_item'])
    if errors:
        raise OrderValidationError(errors)

    items = {
        fi.id: fi for fi in FoodItem.objects.filter(pk__in=item_ids)
        .select_related('category')
        .prefetch_related('preparations', 'variations', 'add_ons', 'custom_liter_sizes')
    }
    global_liters = set(LiterSize.objects.filter(food_item__isnull=True).values_list('id', flat=True))

    for name_en, entries in selections.items():
        category = categories.get(name_en)
        if category is None:
            errors.append(f"{VALIDATION['unknown_item']}: {name_en}")
            continue
        selected = [e for e in entries if is_selected(e)]
        if category.max_selection is not None and len(selected) > category.max_selection:
            errors.append(f"{category.name}: {VALIDATION['max_selection']} ({category.max_selection})")
        for entry in selected:
            item = items.get(int(entry['food_item_id']))
            if item is None or item.category_id != category.id:
                errors.append(f"{VALIDATION['unknown_item']}: {entry['food_item_id']}")
                continue
            try:
                errors.extend(_entry_reference_errors(item, entry, global_liters))
                entry_rows(entry)
            except (KeyError, TypeError, ValueError, InvalidOperation, AttributeError) as exc:
                errors.append(f"{item.name}: {exc}")
    if errors:
        raise OrderValidationError(errors)


def _entry_reference_errors(item: FoodItem, entry: dict, global_liters: set) -> List[str]:
    errors = []
    liters_ok = global_liters | {ls.id for ls in item.custom_liter_sizes.all()}
    prep_ids = {p.id for p in item.preparations.all()}
    var_ids = {v.id for v in item.variations.all()}
    addon_ids = {a.id for a in item.add_ons.all()}

    def _bad(what):
        errors.append(f"{VALIDATION['unknown_item']}: {item.name} ({what})")

    for liter in entry.get('liters') or []:
        if _parse_id(liter.get('liter_size_id')) not in liters_ok:
            _bad('liter_size')
    prep = entry.get('preparation_id')
    if prep not in (None, '') and _parse_id(prep) not in prep_ids:
        _bad('preparation')
    for var in entry.get('variations') or []:
        if _parse_id(var.get('variation_id')) not in var_ids:
            _bad('variation')
    for add_on in entry.get('add_ons') or []:
        if _parse_id(add_on.get('add_on_id')) not in addon_ids:
            _bad('add_on')
        for liter in add_on.get('liters') or []:
            if _parse_id(liter.get('liter_size_id')) not in global_liters:
                _bad('liter_size')
    return errors
