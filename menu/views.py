import json
import logging

from django.contrib.admin.views.decorators import staff_member_required
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, render
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .forms import (
    CustomLiterSizeForm, FoodItemForm, FoodItemUpdateForm, OptionForm, OptionUpdateForm, ReplaceCategoryItemsForm,
)
from .models import FoodItem
from .services import catalog

logger = logging.getLogger(__name__)

FOOD_ITEM_ACTIONS = {
    'deactivate': catalog.deactivate_food_item,
    'restore': catalog.restore_food_item,
    'delete': catalog.delete_food_item_permanently,
}


def _json_body(request: HttpRequest) -> dict:
    payload = json.loads(request.body.decode('utf-8'))
    if not isinstance(payload, dict):
        raise ValueError('Expected a JSON object')
    return payload


def _result_response(result, **extra) -> JsonResponse:
    data = result.as_dict()
    data.update(extra)
    return JsonResponse(data, status=200 if result.success else 400)


def _form_errors(form) -> JsonResponse:
    return JsonResponse({'success': False, 'error': 'Invalid data', 'details': form.errors.get_json_data()}, status=400)


@require_GET
def api_menu(request: HttpRequest):
    """Catalog for the order form: active items with their options and liter sizes."""
    include_inactive = request.GET.get('include_inactive') == '1'
    return JsonResponse(catalog.catalog_snapshot(active_only=not include_inactive))


@ensure_csrf_cookie
def menu_admin(request: HttpRequest):
    """Catalog admin screen (items, preparations, variations, add-ons)."""
    return render(request, 'menu/admin_menu.html', {
        'catalog': catalog.catalog_snapshot(active_only=False),
    })


@require_POST
def api_create_food_item(request: HttpRequest):
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    form = FoodItemForm(payload)
    if not form.is_valid():
        return _form_errors(form)
    data = form.cleaned_data
    result = catalog.create_food_item(
        data['name'], data['category'], data.get('measurement_type') or None,
        portion_multiplier=data.get('portion_multiplier'),
        portion_unit=data.get('portion_unit') or '',
        price=data.get('price'),
    )
    if not result.success:
        return _result_response(result)
    return _result_response(result, item=catalog.serialize_food_item(result.obj, active_only=False))


@require_POST
def api_update_food_item(request: HttpRequest, item_id: int):
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    form = FoodItemUpdateForm(payload)
    if not form.is_valid():
        return _form_errors(form)
    result = catalog.update_food_item(item_id, **form.changed_fields())
    return _result_response(result)


@require_POST
def api_food_item_action(request: HttpRequest, item_id: int, action: str):
    handler = FOOD_ITEM_ACTIONS.get(action)
    if handler is None:
        return JsonResponse({'error': 'Invalid action'}, status=400)
    return _result_response(handler(item_id))


@require_POST
def api_create_option(request: HttpRequest, item_id: int, kind: str):
    if kind not in catalog.OPTION_MODELS:
        return JsonResponse({'error': 'Invalid option type'}, status=400)
    food_item = get_object_or_404(FoodItem, pk=item_id)
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    form = OptionForm(payload)
    if not form.is_valid():
        return _form_errors(form)
    result = catalog.create_option(kind, food_item, form.cleaned_data['name'], form.cleaned_data.get('measurement_type') or None)
    return _result_response(result, id=result.obj.pk if result.obj else None)


@require_POST
def api_update_option(request: HttpRequest, kind: str, option_id: int):
    if kind not in catalog.OPTION_MODELS:
        return JsonResponse({'error': 'Invalid option type'}, status=400)
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    form = OptionUpdateForm(payload)
    if not form.is_valid():
        return _form_errors(form)
    return _result_response(catalog.update_option(kind, option_id, **form.changed_fields()))


@require_POST
def api_option_action(request: HttpRequest, kind: str, option_id: int, action: str):
    if kind not in catalog.OPTION_MODELS:
        return JsonResponse({'error': 'Invalid option type'}, status=400)
    if action == 'deactivate':
        result = catalog.set_option_active(kind, option_id, False)
    elif action == 'restore':
        result = catalog.set_option_active(kind, option_id, True)
    elif action == 'delete':
        result = catalog.delete_option_permanently(kind, option_id)
    else:
        return JsonResponse({'error': 'Invalid action'}, status=400)
    return _result_response(result)


@require_POST
def api_add_liter_size(request: HttpRequest, item_id: int):
    food_item = get_object_or_404(FoodItem, pk=item_id)
    try:
        payload = _json_body(request)
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Invalid JSON'}, status=400)
    form = CustomLiterSizeForm(payload)
    if not form.is_valid():
        return _form_errors(form)
    result = catalog.add_custom_liter_size(food_item, form.cleaned_data['size'], form.cleaned_data.get('label') or '')
    return _result_response(result, id=result.obj.pk if result.obj else None)


@require_POST
def api_remove_liter_size(request: HttpRequest, liter_size_id: int):
    return _result_response(catalog.remove_custom_liter_size(liter_size_id))


@staff_member_required
@require_http_methods(["GET", "POST"])
def replace_category_items(request: HttpRequest, name_en: str = 'salads') -> HttpResponse:
    """Replace all items of one category with a new list.

    - GET: show the form with the current items.
    - POST (form or JSON {names: [...], measurement_type}): run the replace.
      An empty list on the salads category uses the built-in salad list.
    JSON requests get { success, inserted } back; form posts re-render the page.
    """
    context = {'name_en': name_en, 'result': None, 'items': catalog.get_food_items()}
    context['items'] = [i for i in context['items'] if i.category.name_en == name_en]
    if request.method == 'GET':
        context['form'] = ReplaceCategoryItemsForm()
        return render(request, 'menu/replace_category.html', context)

    is_json = request.content_type == 'application/json'
    if is_json:
        try:
            payload = _json_body(request)
        except (ValueError, UnicodeDecodeError):
            return JsonResponse({'error': 'Invalid JSON'}, status=400)
        raw_names = payload.get('names') or []
        form = ReplaceCategoryItemsForm({
            'names': '\n'.join(raw_names) if isinstance(raw_names, list) else str(raw_names),
            'measurement_type': payload.get('measurement_type') or 'liters',
        })
    else:
        form = ReplaceCategoryItemsForm(request.POST)
    if not form.is_valid():
        return _form_errors(form) if is_json else render(request, 'menu/replace_category.html', {**context, 'form': form}, status=400)

    names = form.name_list()
    if not names and name_en == 'salads':
        names = list(catalog.DEFAULT_SALAD_NAMES)
    result = catalog.replace_category_items(name_en, names, form.cleaned_data['measurement_type'])
    logger.info('Category %s replaced by %s: success=%s', name_en, request.user, result.success)
    if is_json:
        return _result_response(result, inserted=result.obj if result.success else 0)
    context.update({'form': form, 'result': result, 'items': [i for i in catalog.get_food_items() if i.category.name_en == name_en]})
    return render(request, 'menu/replace_category.html', context, status=200 if result.success else 400)
