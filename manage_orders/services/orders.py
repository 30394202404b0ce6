from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

from django.db import DatabaseError, transaction
from django.db.models import Q, QuerySet

from catering.results import OperationResult
from manage_orders.labels import ERRORS, VALIDATION
from manage_orders.models import (
    STATUS_ACTIVE, STATUS_CHOICES, Customer, ExtraOrderItem, ExtraOrderItemVariation, Order, OrderItem,
)
from manage_orders.services.selection import OrderInput, OrderValidationError, flatten_selection, validate_selection

logger = logging.getLogger(__name__)

STATUSES = {value for value, _ in STATUS_CHOICES}

ORDER_RELATED = ('customer',)
ORDER_PREFETCH = (
    'items__food_item__category',
    'items__liter_size',
    'items__preparation',
    'items__variation',
    'items__add_on',
    'extra_items__variations',
)


def find_or_create_customer(phone: str, name: str = '', address: str = '', phone_alt: str = '') -> Customer:
    """Customers are keyed by phone; non-empty details overwrite the stored ones."""
    customer, created = Customer.objects.get_or_create(
        phone=phone,
        defaults={'name': name or '', 'address': address or '', 'phone_alt': phone_alt or ''},
    )
    if created:
        return customer
    changed = []
    for attr, value in (('name', name), ('address', address), ('phone_alt', phone_alt)):
        if value and getattr(customer, attr) != value:
            setattr(customer, attr, value)
            changed.append(attr)
    if changed:
        customer.save(update_fields=changed + ['updated_at'])
    return customer


def _check_not_empty(order_input: OrderInput, rows) -> None:
    if not rows and not order_input.extra_items:
        raise OrderValidationError(VALIDATION['select_at_least_one'])


def _write_children(order: Order, order_input: OrderInput, rows) -> None:
    OrderItem.objects.bulk_create([
        OrderItem(
            order=order,
            food_item_id=row.food_item_id,
            liter_size_id=row.liter_size_id,
            size_type=row.size_type,
            quantity=row.quantity,
            price=row.price,
            item_note=row.item_note,
            preparation_id=row.preparation_id,
            variation_id=row.variation_id,
            add_on_id=row.add_on_id,
        )
        for row in rows
    ])
    for extra in order_input.extra_items:
        obj = ExtraOrderItem.objects.create(
            order=order,
            source_food_item_id=extra.source_food_item_id,
            source_category=extra.source_category,
            name=extra.name,
            quantity=extra.quantity,
            size_big=extra.size_big,
            size_small=extra.size_small,
            price=extra.price,
            note=extra.note,
            preparation_name=extra.preparation_name,
        )
        ExtraOrderItemVariation.objects.bulk_create([
            ExtraOrderItemVariation(
                extra_item=obj,
                variation_id=v.variation_id,
                name=v.name,
                size_big=v.size_big,
                size_small=v.size_small,
            )
            for v in extra.variations
            if v.size_big > 0 or v.size_small > 0
        ])


def _order_fields(order_input: OrderInput) -> dict:
    return {
        'order_date': order_input.order_date,
        'order_time': order_input.order_time,
        'customer_time': order_input.customer_time,
        'delivery_address': order_input.address,
        'notes': order_input.notes,
        'total_portions': order_input.total_portions,
        'price_per_portion': order_input.price_per_portion,
        'delivery_fee': order_input.delivery_fee,
    }


def save_order(order_input: OrderInput) -> OperationResult:
    """Create a new active order with its items.

    The customer upsert, the order row and every child row are written in one
    transaction: a failed item insert leaves no order behind.
    Raises OrderValidationError for invalid selections.
    """
    validate_selection(order_input.selections)
    rows = flatten_selection(order_input.selections)
    _check_not_empty(order_input, rows)
    try:
        with transaction.atomic():
            customer = find_or_create_customer(
                order_input.phone, order_input.customer_name, order_input.address, order_input.phone_alt,
            )
            order = Order.objects.create(customer=customer, status=STATUS_ACTIVE, **_order_fields(order_input))
            _write_children(order, order_input, rows)
    except DatabaseError:
        logger.exception('Saving order for %s failed', order_input.phone)
        return OperationResult.fail(ERRORS['save_failed'])
    logger.info('Saved order #%s (%d item rows, %d extras)', order.pk, len(rows), len(order_input.extra_items))
    return OperationResult.ok(order)


def update_order(order_id: int, order_input: OrderInput) -> OperationResult:
    """Replace an order's details and items. Status is left unchanged."""
    try:
        order = Order.objects.get(pk=order_id)
    except Order.DoesNotExist:
        return OperationResult.fail(ERRORS['order_not_found'])
    validate_selection(order_input.selections)
    rows = flatten_selection(order_input.selections)
    _check_not_empty(order_input, rows)
    try:
        with transaction.atomic():
            order.customer = find_or_create_customer(
                order_input.phone, order_input.customer_name, order_input.address, order_input.phone_alt,
            )
            for attr, value in _order_fields(order_input).items():
                setattr(order, attr, value)
            order.save()
            order.items.all().delete()
            order.extra_items.all().delete()
            _write_children(order, order_input, rows)
    except DatabaseError:
        logger.exception('Updating order #%s failed', order_id)
        return OperationResult.fail(ERRORS['update_failed'])
    logger.info('Updated order #%s (%d item rows)', order.pk, len(rows))
    return OperationResult.ok(order)


def delete_order(order_id: int) -> OperationResult:
    try:
        deleted, _ = Order.objects.filter(pk=order_id).delete()
    except DatabaseError:
        logger.exception('Deleting order #%s failed', order_id)
        return OperationResult.fail(ERRORS['delete_failed'])
    if not deleted:
        return OperationResult.fail(ERRORS['order_not_found'])
    logger.info('Deleted order #%s', order_id)
    return OperationResult.ok()


def update_order_status(order_id: int, status: str) -> OperationResult:
    if status not in STATUSES:
        return OperationResult.fail(VALIDATION['invalid_status'])
    updated = Order.objects.filter(pk=order_id).update(status=status)
    if not updated:
        return OperationResult.fail(ERRORS['order_not_found'])
    return OperationResult.ok()


def get_order_with_items(order_id: int) -> Optional[Order]:
    return (
        Order.objects.select_related(*ORDER_RELATED)
        .prefetch_related(*ORDER_PREFETCH)
        .filter(pk=order_id)
        .first()
    )


def get_orders_by_phone(phone: str) -> List[Order]:
    return list(
        Order.objects.select_related(*ORDER_RELATED)
        .filter(Q(customer__phone=phone) | Q(customer__phone_alt=phone))
        .order_by('-order_date', '-id')
    )


def orders_in_range(
    from_date: Optional[dt.date] = None,
    to_date: Optional[dt.date] = None,
    customer_name: Optional[str] = None,
    phone: Optional[str] = None,
) -> QuerySet:
    """Orders with order_date in [from_date, to_date]; either bound may be open.

    customer_name is a case-insensitive substring; phone is a substring of
    either the primary or the alternate phone.
    """
    qs = Order.objects.select_related(*ORDER_RELATED)
    if from_date:
        qs = qs.filter(order_date__gte=from_date)
    if to_date:
        qs = qs.filter(order_date__lte=to_date)
    if customer_name:
        qs = qs.filter(customer__name__icontains=customer_name.strip())
    if phone:
        phone = phone.strip()
        qs = qs.filter(Q(customer__phone__contains=phone) | Q(customer__phone_alt__contains=phone))
    return qs.order_by('order_date', 'order_time', 'id')


def _money(value) -> Optional[str]:
    return str(value) if value is not None else None


def order_to_dict(order: Order, with_items: bool = True) -> dict:
    customer = order.customer
    data = {
        'id': order.id,
        'order_number': order.order_number,
        'order_date': order.order_date.isoformat(),
        'order_time': order.order_time.strftime('%H:%M') if order.order_time else None,
        'customer_time': order.customer_time.strftime('%H:%M') if order.customer_time else None,
        'delivery_address': order.delivery_address,
        'notes': order.notes,
        'status': order.status,
        'total_portions': order.total_portions,
        'price_per_portion': _money(order.price_per_portion),
        'delivery_fee': _money(order.delivery_fee),
        'customer': {
            'id': customer.id,
            'name': customer.name,
            'phone': customer.phone,
            'phone_alt': customer.phone_alt,
            'address': customer.address,
        } if customer else None,
        'created_at': order.created_at.isoformat(),
    }
    if with_items:
        data['total_payment'] = _money(order.total_payment())
        data['items'] = [
            {
                'id': it.id,
                'food_item_id': it.food_item_id,
                'food_item_name': it.food_item.name,
                'category': it.food_item.category.name_en,
                'liter_size_id': it.liter_size_id,
                'liter_label': it.liter_size.label if it.liter_size else None,
                'size_type': it.size_type,
                'quantity': it.quantity,
                'price': _money(it.price),
                'item_note': it.item_note,
                'preparation_id': it.preparation_id,
                'preparation_name': it.preparation.name if it.preparation else None,
                'variation_id': it.variation_id,
                'variation_name': it.variation.name if it.variation else None,
                'add_on_id': it.add_on_id,
                'add_on_name': it.add_on.name if it.add_on else None,
            }
            for it in order.items.all()
        ]
        data['extra_items'] = [
            {
                'id': ex.id,
                'name': ex.name,
                'quantity': ex.quantity,
                'size_big': ex.size_big,
                'size_small': ex.size_small,
                'price': _money(ex.price),
                'note': ex.note,
                'preparation_name': ex.preparation_name,
                'source_category': ex.source_category,
                'source_food_item_id': ex.source_food_item_id,
                'variations': [
                    {'variation_id': v.variation_id, 'name': v.name, 'size_big': v.size_big, 'size_small': v.size_small}
                    for v in ex.variations.all()
                ],
            }
            for ex in order.extra_items.all()
        ]
    return data


def order_to_selection(order: Order) -> dict:
    """Rebuild the order form payload from a saved order (edit screen)."""
    entries = {}
    for it in order.items.all():
        entry = entries.get(it.food_item_id)
        if entry is None:
            entry = {
                'food_item_id': it.food_item_id,
                'category': it.food_item.category.name_en,
                'selected': True,
                'liters': [],
                'size_big': 0,
                'size_small': 0,
                'quantity': 0,
                'preparation_id': None,
                'note': '',
                'price': None,
                'variations': {},
                'add_ons': {},
            }
            entries[it.food_item_id] = entry
        if it.add_on_id:
            add_on = entry['add_ons'].setdefault(it.add_on_id, {'add_on_id': it.add_on_id, 'quantity': 0, 'liters': []})
            if it.liter_size_id:
                add_on['liters'].append({'liter_size_id': it.liter_size_id, 'quantity': it.quantity})
            else:
                add_on['quantity'] += it.quantity
        elif it.variation_id:
            var = entry['variations'].setdefault(
                it.variation_id, {'variation_id': it.variation_id, 'size_big': 0, 'size_small': 0, 'quantity': 0},
            )
            if it.size_type:
                var[f'size_{it.size_type}'] += it.quantity
            else:
                var['quantity'] += it.quantity
        else:
            if it.liter_size_id:
                entry['liters'].append({'liter_size_id': it.liter_size_id, 'quantity': it.quantity})
            elif it.size_type:
                entry[f'size_{it.size_type}'] += it.quantity
            else:
                entry['quantity'] += it.quantity
            if it.preparation_id:
                entry['preparation_id'] = it.preparation_id
        if it.item_note and not entry['note']:
            entry['note'] = it.item_note
        if it.price is not None and entry['price'] is None:
            entry['price'] = str(it.price)

    selections = {}
    for entry in entries.values():
        entry['variations'] = list(entry['variations'].values())
        entry['add_ons'] = list(entry['add_ons'].values())
        selections.setdefault(entry.pop('category'), []).append(entry)

    data = order_to_dict(order)
    customer = data['customer'] or {}
    return {
        'order_id': order.id,
        'customer_name': customer.get('name', ''),
        'phone': customer.get('phone', ''),
        'phone_alt': customer.get('phone_alt', ''),
        'address': order.delivery_address,
        'order_date': data['order_date'],
        'order_time': data['order_time'] or '',
        'customer_time': data['customer_time'] or '',
        'notes': order.notes,
        'total_portions': order.total_portions,
        'price_per_portion': data['price_per_portion'],
        'delivery_fee': data['delivery_fee'],
        'status': order.status,
        'selections': selections,
        'extra_items': data['extra_items'],
    }
