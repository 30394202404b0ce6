import json
import logging

from django.db import DatabaseError
from django.http import Http404, HttpRequest, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from manage_orders.forms import SummaryFilterForm
from manage_orders.labels import ERRORS
from manage_orders.services import orders as order_service
from manage_orders.services import print_layout
from manage_orders.services.selection import OrderInput, OrderValidationError, flatten_selection, validate_selection
from manage_orders.services.summary import build_summary, filter_summary
from menu.services.catalog import catalog_snapshot

logger = logging.getLogger(__name__)

PRINT_SESSION_KEY = 'print_document'


def _json_body(request: HttpRequest) -> dict:
    payload = json.loads(request.body.decode('utf-8'))
    if not isinstance(payload, dict):
        raise ValueError('Expected a JSON object')
    return payload


def _validation_response(exc: OrderValidationError) -> JsonResponse:
    return JsonResponse({'error': exc.messages[0], 'details': exc.messages}, status=400)


def _catalog_or_empty():
    # Page rendering keeps working with an empty menu if the store is down.
    try:
        return catalog_snapshot()
    except DatabaseError:
        logger.exception('Loading catalog failed')
        return {'liter_sizes': [], 'categories': []}


@ensure_csrf_cookie
def index(request):
    return redirect('manage_orders_order')


@ensure_csrf_cookie
def order(request):
    return render(request, 'manage_orders/order.html', {
        'catalog': _catalog_or_empty(),
        'initial_order': None,
    })


@ensure_csrf_cookie
def edit_order(request, order_id: int):
    obj = order_service.get_order_with_items(order_id)
    if obj is None:
        raise Http404(ERRORS['order_not_found'])
    return render(request, 'manage_orders/order.html', {
        'catalog': _catalog_or_empty(),
        'initial_order': order_service.order_to_selection(obj),
        'order': obj,
    })


@ensure_csrf_cookie
def summary(request):
    """Orders and kitchen quantities for a date range (defaults to today)."""
    params = request.GET.copy()
    if not any(params.get(k) for k in ('from_date', 'to_date', 'range')):
        params['range'] = 'today'
    form = SummaryFilterForm(params)
    ctx = {'form': form, 'orders': [], 'summary': [], 'error': None}
    status = 200
    if form.is_valid():
        frm, to = form.date_bounds(timezone.localdate())
        name, phone = form.cleaned_data['customer_name'], form.cleaned_data['phone']
        try:
            ctx['orders'] = list(
                order_service.orders_in_range(frm, to, customer_name=name, phone=phone)
                .prefetch_related(*order_service.ORDER_PREFETCH)
            )
            ctx['summary'] = filter_summary(
                build_summary(frm, to, customer_name=name, phone=phone),
                category=form.cleaned_data['category'],
                search=form.cleaned_data['search'],
            )
        except DatabaseError:
            logger.exception('Summary for %s..%s failed', frm, to)
            ctx['error'] = ERRORS['load_failed']
            status = 503
        ctx['from_date'], ctx['to_date'] = frm, to
    return render(request, 'manage_orders/summary.html', ctx, status=status)


@require_POST
def api_submit_order(request: HttpRequest):
    """Create an order from the order form payload.

    Returns { order_id, order_number } or { error, details } with 400.
    """
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    try:
        result = order_service.save_order(OrderInput.from_payload(payload))
    except OrderValidationError as exc:
        return _validation_response(exc)
    if not result.success:
        return JsonResponse(result.as_dict(), status=500)
    return JsonResponse({'success': True, 'order_id': result.obj.pk, 'order_number': result.obj.order_number})


@require_POST
def api_update_order(request: HttpRequest, order_id: int):
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    try:
        result = order_service.update_order(order_id, OrderInput.from_payload(payload))
    except OrderValidationError as exc:
        return _validation_response(exc)
    if not result.success:
        status = 404 if result.error == ERRORS['order_not_found'] else 500
        return JsonResponse(result.as_dict(), status=status)
    return JsonResponse({'success': True, 'order_id': result.obj.pk})


@require_POST
def api_delete_order(request: HttpRequest, order_id: int):
    result = order_service.delete_order(order_id)
    if not result.success:
        status = 404 if result.error == ERRORS['order_not_found'] else 500
        return JsonResponse(result.as_dict(), status=status)
    return JsonResponse({'success': True})


@require_POST
def api_order_status(request: HttpRequest, order_id: int):
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    result = order_service.update_order_status(order_id, str(payload.get('status') or ''))
    if not result.success:
        status = 404 if result.error == ERRORS['order_not_found'] else 400
        return JsonResponse(result.as_dict(), status=status)
    return JsonResponse({'success': True, 'status': payload.get('status')})


@require_GET
def api_order_detail(request: HttpRequest, order_id: int):
    obj = order_service.get_order_with_items(order_id)
    if obj is None:
        return JsonResponse({'error': 'Not found'}, status=404)
    return JsonResponse({'order': order_service.order_to_dict(obj)})


@require_GET
def api_orders(request: HttpRequest):
    """Orders in a date range.

    Query params: from_date, to_date (YYYY-MM-DD, inclusive, optional), customer_name, phone.
    Response: { orders: [ {...}, ... ] }
    """
    form = SummaryFilterForm(request.GET)
    if not form.is_valid():
        return JsonResponse({'error': 'Invalid filters', 'details': form.errors.get_json_data()}, status=400)
    frm, to = form.date_bounds(timezone.localdate())
    try:
        orders = [
            order_service.order_to_dict(o)
            for o in order_service.orders_in_range(
                frm, to, customer_name=form.cleaned_data['customer_name'], phone=form.cleaned_data['phone'],
            ).prefetch_related(*order_service.ORDER_PREFETCH)
        ]
    except DatabaseError:
        logger.exception('Listing orders failed')
        return JsonResponse({'error': ERRORS['load_failed']}, status=503)
    return JsonResponse({'orders': orders})


@require_GET
def api_orders_by_phone(request: HttpRequest):
    phone = (request.GET.get('phone') or '').strip()
    if not phone:
        return JsonResponse({'error': 'phone is required'}, status=400)
    return JsonResponse({'orders': [order_service.order_to_dict(o, with_items=False) for o in order_service.get_orders_by_phone(phone)]})


@require_GET
def api_orders_summary(request: HttpRequest):
    """Kitchen quantities per category for orders in a date range.

    Query params as api_orders, plus optional category (name_en) and search.
    Response: { from_date, to_date, categories: [ {category_id, category_name, items: [...]}, ... ] }
    """
    form = SummaryFilterForm(request.GET)
    if not form.is_valid():
        return JsonResponse({'error': 'Invalid filters', 'details': form.errors.get_json_data()}, status=400)
    frm, to = form.date_bounds(timezone.localdate())
    try:
        categories = build_summary(
            frm, to, customer_name=form.cleaned_data['customer_name'], phone=form.cleaned_data['phone'],
        )
    except DatabaseError:
        logger.exception('Summary for %s..%s failed', frm, to)
        return JsonResponse({'error': ERRORS['load_failed']}, status=503)
    categories = filter_summary(categories, category=form.cleaned_data['category'], search=form.cleaned_data['search'])
    return JsonResponse({
        'from_date': frm.isoformat() if frm else None,
        'to_date': to.isoformat() if to else None,
        'categories': [c.to_dict() for c in categories],
    })


# ---- Print ----

def _store_document(request, doc: print_layout.PrintDocument) -> None:
    request.session[PRINT_SESSION_KEY] = doc.to_dict()


def _load_document(request):
    data = request.session.get(PRINT_SESSION_KEY)
    if not data:
        return None
    return print_layout.PrintDocument.from_dict(data)


@require_GET
def print_order(request: HttpRequest, order_id: int):
    obj = order_service.get_order_with_items(order_id)
    if obj is None:
        raise Http404(ERRORS['order_not_found'])
    include_unselected = request.GET.get('all') == '1'
    _store_document(request, print_layout.document_for_order(obj, include_unselected=include_unselected))
    return redirect('mo_print_preview')


@require_POST
def api_print_draft(request: HttpRequest):
    """Compose a ticket for the order currently on the form (saved or not)."""
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    try:
        order_input = OrderInput.from_payload(payload)
        validate_selection(order_input.selections)
        rows = flatten_selection(order_input.selections)
    except OrderValidationError as exc:
        return _validation_response(exc)
    doc = print_layout.document_for_draft(order_input, rows, include_unselected=bool(payload.get('show_unselected', True)))
    if payload.get('order_number'):
        doc.header['order_number'] = payload['order_number']
    _store_document(request, doc)
    return JsonResponse({'success': True, 'redirect': reverse('mo_print_preview')})


@require_GET
def print_preview(request: HttpRequest):
    doc = _load_document(request)
    if doc is None:
        return redirect('manage_orders_order')
    return render(request, 'manage_orders/print_order.html', {'doc': doc})


@require_POST
def api_print_layout(request: HttpRequest):
    """Apply a layout change to the ticket in the session.

    Body: { action: hide|restore|move|reset, section, item, index }
    """
    doc = _load_document(request)
    if doc is None:
        return JsonResponse({'error': 'Not found'}, status=404)
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    action = payload.get('action')
    section, item = payload.get('section'), str(payload.get('item') or '')
    try:
        if action == 'hide':
            print_layout.hide_item(doc, section, item)
        elif action == 'restore':
            print_layout.restore_item(doc, section, item)
        elif action == 'move':
            print_layout.move_item(doc, section, item, int(payload.get('index', 0)))
        elif action == 'reset':
            print_layout.reset_layout(doc)
        else:
            return JsonResponse({'error': 'Invalid action'}, status=400)
    except KeyError:
        return JsonResponse({'error': 'Not found'}, status=404)
    except (TypeError, ValueError):
        return JsonResponse({'error': 'Invalid index'}, status=400)
    _store_document(request, doc)
    return JsonResponse({'success': True, 'document': doc.to_dict()})
