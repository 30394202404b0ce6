"""Kitchen ticket composition.

A ticket is an A4 page with fixed sections laid out in three columns:

    salads | middle_courses + extras + bakery | sides + mains

Each section has a fixed number of rows. Items can be hidden (a placeholder
keeps the row), restored, or moved within their section before printing.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from django.db.models import Q

from manage_orders.labels import LABELS, SIZE_LABELS
from manage_orders.models import SIZE_BIG, Order
from manage_orders.services.selection import ExtraItemInput, ExtraVariationInput, ItemRow
from menu.models import (
    MEASUREMENT_NONE, Category, FoodItem, FoodItemAddOn, FoodItemPreparation, FoodItemVariation, LiterSize,
)

# (section id, rows on the page); titles come from the category rows
SECTIONS = [
    ('salads', 28),
    ('middle_courses', 11),
    ('sides', 11),
    ('mains', 11),
    ('extras', 5),
    ('bakery', 6),
]
SECTION_IDS = [s[0] for s in SECTIONS]

COLUMNS = [
    ['salads'],
    ['middle_courses', 'extras', 'bakery'],
    ['sides', 'mains'],
]

UNIT_GRAMS = 'גרם'
UNITS_SHOWN_AS_EQUATION = {'חצאים', 'קציצות'}


@dataclass
class PrintItem:
    id: str
    food_item_id: Optional[int]
    name: str
    category: str
    selected: bool = True
    liters: List[dict] = field(default_factory=list)
    size_big: int = 0
    size_small: int = 0
    regular_quantity: int = 0
    quantity: int = 0
    variations: List[dict] = field(default_factory=list)
    add_ons: List[dict] = field(default_factory=list)
    preparation_name: str = ''
    portion_multiplier: Optional[int] = None
    portion_unit: str = ''
    calculated_quantity: Optional[str] = None
    note: str = ''
    price: Optional[str] = None
    sort_order: int = 0
    base_sort_order: int = 0
    is_visible: bool = True
    is_placeholder: bool = False
    is_bulk_applied: bool = False

    @property
    def display_name(self) -> str:
        if self.preparation_name:
            return f'{self.name} ({self.preparation_name})'
        return self.name

    @property
    def quantity_label(self) -> str:
        return format_quantity(self)


@dataclass
class PrintSection:
    id: str
    title: str
    max_items: int
    items: List[PrintItem] = field(default_factory=list)

    @property
    def rows(self) -> list:
        """Items padded with None up to the section's row count."""
        return self.items + [None] * max(0, self.max_items - len(self.items))

    @property
    def overflow(self) -> int:
        return max(0, len(self.items) - self.max_items)


@dataclass
class PrintDocument:
    header: dict
    sections: List[PrintSection]
    common_liters: List[dict] = field(default_factory=list)

    def section(self, section_id: str) -> PrintSection:
        for sec in self.sections:
            if sec.id == section_id:
                return sec
        raise KeyError(section_id)

    @property
    def columns(self) -> List[List[PrintSection]]:
        return [[self.section(sid) for sid in col] for col in COLUMNS]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'PrintDocument':
        sections = [
            PrintSection(
                id=s['id'], title=s['title'], max_items=s['max_items'],
                items=[PrintItem(**i) for i in s['items']],
            )
            for s in data['sections']
        ]
        return cls(header=dict(data['header']), sections=sections, common_liters=list(data.get('common_liters', [])))


# ---- Quantity labels ----

def _liter_parts(liters) -> str:
    return ' '.join(f"{l['label']}:{l['quantity']}" for l in liters if l['quantity'] > 0)


def format_quantity(item: PrintItem) -> str:
    """The quantity text printed next to an item name.

    A pre-computed portion amount wins. Otherwise the parts are liters
    ("1.5L:2 3L:1"), big/small ("ג׳:1 ק׳:2", skipped when variations carry the
    sizes), "×n" counts, one part per variation and one per add-on, joined
    with " | ".
    """
    if item.calculated_quantity:
        return item.calculated_quantity
    parts = []
    liters = _liter_parts(item.liters)
    if liters:
        parts.append(liters)
    has_variation_sizes = any(v['size_big'] > 0 or v['size_small'] > 0 for v in item.variations)
    if not has_variation_sizes:
        sizes = []
        if item.size_big > 0:
            sizes.append(f"{SIZE_LABELS['big']}:{item.size_big}")
        if item.size_small > 0:
            sizes.append(f"{SIZE_LABELS['small']}:{item.size_small}")
        if sizes:
            parts.append(' '.join(sizes))
    if item.regular_quantity > 0:
        parts.append(f'×{item.regular_quantity}')
    for v in item.variations:
        v_parts = []
        if v['size_big'] > 0:
            v_parts.append(f"{SIZE_LABELS['big']}:{v['size_big']}")
        if v['size_small'] > 0:
            v_parts.append(f"{SIZE_LABELS['small']}:{v['size_small']}")
        if v.get('quantity', 0) > 0:
            v_parts.append(f"×{v['quantity']}")
        if v_parts:
            parts.append(f"{v['name']} {' '.join(v_parts)}")
    if item.quantity > 0 and not item.liters and not item.size_big and not item.size_small and not item.variations:
        parts.append(f'×{item.quantity}')
    for ao in item.add_ons:
        ao_parts = []
        if ao['quantity'] > 0:
            ao_parts.append(f"×{ao['quantity']}")
        ao_liters = _liter_parts(ao.get('liters') or [])
        if ao_liters:
            ao_parts.append(ao_liters)
        if ao_parts:
            parts.append(f"{ao['name']} ({' '.join(ao_parts)})")
    return ' | '.join(parts)


def calculated_quantity(quantity: int, multiplier: Optional[int], unit: str) -> Optional[str]:
    """Portion amount for mains, e.g. 4 x 150 גרם -> '600 גרם', 3 x 3 חצאים -> '3 = 9'."""
    if not quantity or not multiplier or not unit:
        return None
    total = quantity * multiplier
    if unit == UNIT_GRAMS:
        return f'{total} {UNIT_GRAMS}'
    if unit in UNITS_SHOWN_AS_EQUATION:
        return f'{quantity} = {total}'
    return f'{total} {unit}'


# ---- Common liter patterns ----

def liter_signature(liters) -> str:
    """Canonical text for a liter pattern: the sorted (label, quantity) pairs with quantity > 0."""
    pairs = sorted((l['label'], l['quantity']) for l in liters if l['quantity'] > 0)
    return json.dumps(pairs, ensure_ascii=False) if pairs else ''


def _salad_signatures(items: List[PrintItem]) -> Dict[str, List[PrintItem]]:
    by_sig: Dict[str, List[PrintItem]] = {}
    for item in items:
        if item.category != 'salads' or not item.selected:
            continue
        sig = liter_signature(item.liters)
        if sig:
            by_sig.setdefault(sig, []).append(item)
    return by_sig


def mark_common_liters(items: List[PrintItem]) -> List[dict]:
    """Flag salads whose liter pattern is shared with another salad.

    Returns one entry per shared pattern: {'liters': '1.5L:2 3L:1', 'names': [...]}.
    """
    groups = []
    for sig, members in _salad_signatures(items).items():
        if len(members) < 2:
            continue
        for m in members:
            m.is_bulk_applied = True
        groups.append({
            'liters': ' '.join(f'{label}:{qty}' for label, qty in json.loads(sig)),
            'names': [m.name for m in members],
        })
    return groups


# ---- Composition ----

def _load_lookups(rows: List[ItemRow], extra_ids, include_categories):
    item_ids = {r.food_item_id for r in rows} | set(extra_ids)
    qs = FoodItem.objects.select_related('category')
    if include_categories:
        qs = qs.filter(Q(pk__in=item_ids) | Q(category__name_en__in=include_categories, is_active=True))
    else:
        qs = qs.filter(pk__in=item_ids)
    foods = {f.id: f for f in qs}
    liters = {ls.id: ls for ls in LiterSize.objects.filter(pk__in={r.liter_size_id for r in rows if r.liter_size_id})}
    preps = {p.id: p.name for p in FoodItemPreparation.objects.filter(pk__in={r.preparation_id for r in rows if r.preparation_id})}
    variations = {v.id: v.name for v in FoodItemVariation.objects.filter(pk__in={r.variation_id for r in rows if r.variation_id})}
    add_ons = {a.id: a.name for a in FoodItemAddOn.objects.filter(pk__in={r.add_on_id for r in rows if r.add_on_id})}
    return foods, liters, preps, variations, add_ons


def _liter_entry(liters, liter_size_id, quantity) -> dict:
    ls = liters.get(liter_size_id)
    return {'label': ls.label if ls else str(liter_size_id), 'size': float(ls.size) if ls else 0.0, 'quantity': quantity}


def _merge_liter(target: list, entry: dict) -> None:
    for existing in target:
        if existing['label'] == entry['label']:
            existing['quantity'] += entry['quantity']
            return
    target.append(entry)


def compose_items(rows: List[ItemRow], extra_items: List[ExtraItemInput] = (), include_unselected: bool = False) -> List[PrintItem]:
    """Turn flattened order rows (saved or not) into one PrintItem per food item."""
    extra_items = list(extra_items)
    foods, liters, preps, variations, add_ons = _load_lookups(
        rows,
        [e.source_food_item_id for e in extra_items if e.source_food_item_id],
        SECTION_IDS if include_unselected else None,
    )
    items: Dict[int, PrintItem] = {}
    for row in rows:
        food = foods.get(row.food_item_id)
        if food is None:
            continue
        item = items.get(food.id)
        if item is None:
            item = PrintItem(
                id=str(food.id), food_item_id=food.id, name=food.name, category=food.category.name_en,
                sort_order=food.sort_order, base_sort_order=food.sort_order,
                portion_multiplier=food.portion_multiplier, portion_unit=food.portion_unit,
            )
            items[food.id] = item
        if row.add_on_id:
            name = add_ons.get(row.add_on_id, '')
            ao = next((a for a in item.add_ons if a['name'] == name), None)
            if ao is None:
                ao = {'name': name, 'quantity': 0, 'liters': []}
                item.add_ons.append(ao)
            if row.liter_size_id:
                _merge_liter(ao['liters'], _liter_entry(liters, row.liter_size_id, row.quantity))
            else:
                ao['quantity'] += row.quantity
        elif row.variation_id:
            name = variations.get(row.variation_id, '')
            var = next((v for v in item.variations if v['name'] == name), None)
            if var is None:
                var = {'name': name, 'size_big': 0, 'size_small': 0, 'quantity': 0}
                item.variations.append(var)
            if row.size_type:
                var['size_big' if row.size_type == SIZE_BIG else 'size_small'] += row.quantity
            else:
                var['quantity'] += row.quantity
        elif row.liter_size_id:
            _merge_liter(item.liters, _liter_entry(liters, row.liter_size_id, row.quantity))
        elif row.size_type:
            if row.size_type == SIZE_BIG:
                item.size_big += row.quantity
            else:
                item.size_small += row.quantity
        elif food.measurement_type == MEASUREMENT_NONE:
            item.quantity += row.quantity
        else:
            item.regular_quantity += row.quantity
        if row.preparation_id and not item.preparation_name:
            item.preparation_name = preps.get(row.preparation_id, '')
        if row.item_note and not item.note:
            item.note = row.item_note
        if row.price is not None and item.price is None:
            item.price = str(row.price)

    for item in items.values():
        item.liters.sort(key=lambda l: (l['size'], l['label']))
        if item.category == 'mains':
            item.calculated_quantity = calculated_quantity(item.quantity, item.portion_multiplier, item.portion_unit)

    result = list(items.values())
    if include_unselected:
        for food in foods.values():
            if food.id not in items and food.category.name_en in SECTION_IDS and food.is_active:
                result.append(PrintItem(
                    id=str(food.id), food_item_id=food.id, name=food.name, category=food.category.name_en,
                    selected=False, sort_order=food.sort_order, base_sort_order=food.sort_order,
                ))

    for idx, extra in enumerate(extra_items, start=1):
        order_key = 1000 + idx
        result.append(PrintItem(
            id=f'extra-{idx}', food_item_id=extra.source_food_item_id, name=extra.name, category='extras',
            quantity=extra.quantity, size_big=extra.size_big, size_small=extra.size_small,
            variations=[{'name': v.name, 'size_big': v.size_big, 'size_small': v.size_small, 'quantity': 0} for v in extra.variations],
            preparation_name=extra.preparation_name, note=extra.note,
            price=str(extra.price) if extra.price else None,
            sort_order=order_key, base_sort_order=order_key,
        ))
    return result


def section_title(category: Optional[Category], section_id: str) -> str:
    """'סלטים: (10 לבחירה)' for limited categories, the plain name otherwise."""
    if category is None:
        return section_id
    if category.max_selection is not None:
        return f"{category.name}: ({category.max_selection} {LABELS['selection']['to_select']})"
    return category.name


def build_sections(items: List[PrintItem]) -> List[PrintSection]:
    categories = {c.name_en: c for c in Category.objects.filter(name_en__in=SECTION_IDS)}
    sections = []
    for section_id, max_items in SECTIONS:
        title = section_title(categories.get(section_id), section_id)
        members = [i for i in items if i.category == section_id]
        # selected items first, then the rest of the menu
        members.sort(key=lambda i: (not i.selected, i.sort_order, i.name))
        for pos, item in enumerate(members, start=1):
            item.sort_order = pos
            item.base_sort_order = pos
        sections.append(PrintSection(id=section_id, title=title, max_items=max_items, items=members))
    return sections


def compose_document(header: dict, rows: List[ItemRow], extra_items=(), include_unselected: bool = False) -> PrintDocument:
    items = compose_items(rows, extra_items, include_unselected=include_unselected)
    common = mark_common_liters(items)
    return PrintDocument(header=header, sections=build_sections(items), common_liters=common)


def _order_rows(order: Order) -> List[ItemRow]:
    return [
        ItemRow(
            food_item_id=it.food_item_id, quantity=it.quantity, liter_size_id=it.liter_size_id,
            size_type=it.size_type, price=it.price, item_note=it.item_note,
            preparation_id=it.preparation_id, variation_id=it.variation_id, add_on_id=it.add_on_id,
        )
        for it in order.items.all()
    ]


def _order_extras(order: Order) -> List[ExtraItemInput]:
    return [
        ExtraItemInput(
            name=ex.name, quantity=ex.quantity, size_big=ex.size_big, size_small=ex.size_small,
            price=ex.price, note=ex.note, preparation_name=ex.preparation_name,
            source_category=ex.source_category, source_food_item_id=ex.source_food_item_id,
            variations=[
                ExtraVariationInput(name=v.name, variation_id=v.variation_id, size_big=v.size_big, size_small=v.size_small)
                for v in ex.variations.all()
            ],
        )
        for ex in order.extra_items.all()
    ]


def order_header(order: Order) -> dict:
    customer = order.customer
    total = order.total_payment()
    return {
        'order_number': order.order_number,
        'order_date': order.order_date.strftime('%d/%m/%Y'),
        'order_time': order.order_time.strftime('%H:%M') if order.order_time else '',
        'customer_name': customer.name if customer else '',
        'customer_phone': customer.phone if customer else '',
        'customer_address': order.delivery_address or (customer.address if customer else ''),
        'notes': order.notes,
        'total_payment': str(total) if total is not None else None,
    }


def document_for_order(order: Order, include_unselected: bool = False) -> PrintDocument:
    return compose_document(order_header(order), _order_rows(order), _order_extras(order), include_unselected)


def document_for_draft(order_input, rows: List[ItemRow], include_unselected: bool = True) -> PrintDocument:
    """Ticket for an order that has been filled in but not saved yet."""
    header = {
        'order_number': None,
        'order_date': order_input.order_date.strftime('%d/%m/%Y'),
        'order_time': order_input.order_time.strftime('%H:%M') if order_input.order_time else '',
        'customer_name': order_input.customer_name,
        'customer_phone': order_input.phone,
        'customer_address': order_input.address,
        'notes': order_input.notes,
        'total_payment': None,
    }
    return compose_document(header, rows, order_input.extra_items, include_unselected)


# ---- Layout operations ----

def _find(doc: PrintDocument, section_id: str, item_id: str) -> PrintItem:
    for item in doc.section(section_id).items:
        if item.id == item_id:
            return item
    raise KeyError(item_id)


def hide_item(doc: PrintDocument, section_id: str, item_id: str) -> PrintDocument:
    """Hide an item; its row stays as an empty placeholder."""
    item = _find(doc, section_id, item_id)
    item.is_visible = False
    item.is_placeholder = True
    return doc


def restore_item(doc: PrintDocument, section_id: str, item_id: str) -> PrintDocument:
    item = _find(doc, section_id, item_id)
    item.is_visible = True
    item.is_placeholder = False
    return doc


def move_item(doc: PrintDocument, section_id: str, item_id: str, to_index: int) -> PrintDocument:
    """Move an item to ``to_index`` (0-based) within its section and renumber sort orders from 1."""
    section = doc.section(section_id)
    item = _find(doc, section_id, item_id)
    section.items.remove(item)
    to_index = max(0, min(int(to_index), len(section.items)))
    section.items.insert(to_index, item)
    for pos, it in enumerate(section.items, start=1):
        it.sort_order = pos
    return doc


def reset_layout(doc: PrintDocument) -> PrintDocument:
    """Undo hides and moves."""
    for section in doc.sections:
        section.items.sort(key=lambda i: i.base_sort_order)
        for it in section.items:
            it.sort_order = it.base_sort_order
            it.is_visible = True
            it.is_placeholder = False
    return doc
