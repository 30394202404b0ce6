import datetime as dt
import json
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from catering.testing import Catalog, order_payload, sign_in
from manage_orders.forms import week_bounds
from manage_orders.labels import ERRORS, VALIDATION
from manage_orders.models import (
    SIZE_BIG, SIZE_SMALL, STATUS_ACTIVE, STATUS_COMPLETED, Customer, ExtraOrderItem, Order, OrderItem,
)
from manage_orders.services import orders as order_service
from manage_orders.services import print_layout
from manage_orders.services.selection import (
    ItemRow, OrderInput, OrderValidationError, flatten_selection, validate_selection,
)
from manage_orders.services.summary import build_summary, filter_summary, group_key, hebrew_sort_key
from menu.models import FoodItem, FoodItemVariation

D = dt.date


def _order(day, phone='0501111111', name='', phone_alt='', rows=()):
    customer, _ = Customer.objects.get_or_create(phone=phone, defaults={'name': name, 'phone_alt': phone_alt})
    order = Order.objects.create(customer=customer, order_date=day)
    for kwargs in rows:
        OrderItem.objects.create(order=order, **kwargs)
    return order


def _names(category_summary):
    return [i.food_name for i in category_summary.items]


class SummaryAggregationTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def test_quantities_are_summed_per_liter_size(self):
        c = self.cat
        _order(D(2025, 3, 10), rows=[{'food_item': c.hummus, 'liter_size': c.l15, 'quantity': 2}])
        _order(D(2025, 3, 10), rows=[
            {'food_item': c.hummus, 'liter_size': c.l15, 'quantity': 3},
            {'food_item': c.hummus, 'liter_size': c.l25, 'quantity': 1},
        ])
        result = build_summary(D(2025, 3, 10), D(2025, 3, 10))
        self.assertEqual([s.category_name_en for s in result], ['salads'])
        item = result[0].items[0]
        self.assertEqual(item.food_name, 'חומוס')
        self.assertEqual(
            [(lq.liter_label, lq.total_quantity) for lq in item.liter_quantities],
            [('1.5L', 5), ('2.5L', 1)],
        )
        self.assertEqual(item.size_quantities, [])
        self.assertEqual(item.total_quantity, 0)

    def test_add_on_rows_do_not_merge_with_parent(self):
        c = self.cat
        _order(D(2025, 3, 10), rows=[
            {'food_item': c.hummus, 'liter_size': c.l15, 'quantity': 1},
            {'food_item': c.hummus, 'add_on': c.tahini, 'liter_size': c.l15, 'quantity': 2},
            {'food_item': c.hummus, 'add_on': c.oil, 'quantity': 3},
        ])
        salads = build_summary()[0]
        self.assertEqual(_names(salads), ['חומוס', 'טחינה (תוספת לחומוס)', 'שמן זית (תוספת לחומוס)'])
        hummus, tahini, oil = salads.items
        self.assertEqual(hummus.liter_quantities[0].total_quantity, 1)
        self.assertTrue(tahini.is_add_on)
        self.assertEqual(tahini.parent_food_name, 'חומוס')
        self.assertEqual(tahini.liter_quantities[0].total_quantity, 2)
        self.assertEqual(oil.total_quantity, 3)

    def test_categories_without_items_are_omitted(self):
        c = self.cat
        _order(D(2025, 3, 10), rows=[{'food_item': c.kebab, 'quantity': 5}])
        result = build_summary()
        self.assertEqual([s.category_name_en for s in result], ['middle_courses'])
        self.assertEqual(result[0].items[0].total_quantity, 5)

    def test_no_orders_gives_empty_list(self):
        self.assertEqual(build_summary(D(2030, 1, 1), D(2030, 1, 2)), [])

    def test_tier_then_hebrew_order(self):
        c = self.cat
        watermelon = FoodItem.objects.create(category=c.salads, name='אבטיח', measurement_type='liters')
        green = FoodItemVariation.objects.create(parent_food_item=c.hummus, name='ירוק')
        _order(D(2025, 3, 10), rows=[
            {'food_item': c.hummus, 'add_on': c.tahini, 'liter_size': c.l15, 'quantity': 1},
            {'food_item': c.hummus, 'variation': green, 'size_type': SIZE_BIG, 'quantity': 1},
            {'food_item': c.hummus, 'liter_size': c.l15, 'quantity': 1},
            {'food_item': watermelon, 'liter_size': c.l15, 'quantity': 1},
        ])
        salads = build_summary()[0]
        self.assertEqual(_names(salads), ['אבטיח', 'חומוס', 'חומוס - ירוק', 'טחינה (תוספת לחומוס)'])
        self.assertEqual([i.tier for i in salads.items], [0, 0, 1, 2])

    def test_variations_and_preparations(self):
        c = self.cat
        _order(D(2025, 3, 10), rows=[
            {'food_item': c.rice, 'variation': c.white, 'size_type': SIZE_BIG, 'quantity': 2},
            {'food_item': c.rice, 'variation': c.white, 'size_type': SIZE_SMALL, 'quantity': 1},
            {'food_item': c.rice, 'variation': c.yellow, 'size_type': SIZE_SMALL, 'quantity': 4},
            {'food_item': c.schnitzel, 'preparation': c.fried, 'quantity': 3},
            {'food_item': c.schnitzel, 'preparation': c.baked, 'quantity': 2},
            {'food_item': c.schnitzel, 'preparation': c.fried, 'quantity': 1},
        ])
        sides, mains = build_summary()
        self.assertEqual(_names(sides), ['אורז - לבן', 'אורז - צהוב'])
        white = sides.items[0]
        self.assertEqual([(s.size_label, s.total_quantity) for s in white.size_quantities], [('ג׳', 2), ('ק׳', 1)])
        self.assertEqual(_names(mains), ['שניצל (אפוי)', 'שניצל (מטוגן)'])
        self.assertEqual([i.total_quantity for i in mains.items], [2, 4])
        self.assertTrue(all(i.is_preparation and i.tier == 0 for i in mains.items))

    def test_date_range_is_inclusive(self):
        c = self.cat
        for day, qty in ((9, 100), (10, 1), (12, 2), (13, 100)):
            _order(D(2025, 3, day), rows=[{'food_item': c.kebab, 'quantity': qty}])
        result = build_summary(D(2025, 3, 10), D(2025, 3, 12))
        self.assertEqual(result[0].items[0].total_quantity, 3)
        self.assertEqual(build_summary(D(2025, 3, 13))[0].items[0].total_quantity, 100)
        self.assertEqual(build_summary(to_date=D(2025, 3, 9))[0].items[0].total_quantity, 100)

    def test_phone_filter_matches_primary_or_alternate(self):
        c = self.cat
        _order(D(2025, 3, 10), phone='0521111111', rows=[{'food_item': c.kebab, 'quantity': 1}])
        _order(D(2025, 3, 10), phone='0532222222', phone_alt='0549999999', rows=[{'food_item': c.kebab, 'quantity': 2}])
        _order(D(2025, 3, 10), phone='0583333333', rows=[{'food_item': c.kebab, 'quantity': 4}])
        self.assertEqual(build_summary(phone='1111')[0].items[0].total_quantity, 1)
        self.assertEqual(build_summary(phone='9999')[0].items[0].total_quantity, 2)
        self.assertEqual(build_summary(phone='05')[0].items[0].total_quantity, 7)
        self.assertEqual(build_summary(phone='7777'), [])

    def test_customer_name_filter_is_case_insensitive_substring(self):
        c = self.cat
        _order(D(2025, 3, 10), phone='0521111111', name='Cohen Events', rows=[{'food_item': c.kebab, 'quantity': 1}])
        _order(D(2025, 3, 10), phone='0532222222', name='לוי', rows=[{'food_item': c.kebab, 'quantity': 2}])
        self.assertEqual(build_summary(customer_name='cohen')[0].items[0].total_quantity, 1)
        self.assertEqual(build_summary(customer_name='לו')[0].items[0].total_quantity, 2)

    def test_group_key_precedence(self):
        row = OrderItem(food_item_id=1, add_on_id=2, variation_id=3, preparation_id=4, quantity=1)
        self.assertEqual(group_key(row), '1-addon-2')
        row.add_on_id = None
        self.assertEqual(group_key(row), '1-var-3')
        row.variation_id = None
        self.assertEqual(group_key(row), '1-prep-4')
        row.preparation_id = None
        self.assertEqual(group_key(row), '1')

    def test_hebrew_sort_key_folds_final_letters(self):
        self.assertEqual(hebrew_sort_key('שלום'), hebrew_sort_key('שלומ'))
        self.assertLess(hebrew_sort_key('אבטיח'), hebrew_sort_key('חומוס'))
        self.assertEqual(hebrew_sort_key('Salad'), hebrew_sort_key('salad'))

    def test_filter_summary_by_category_and_search(self):
        c = self.cat
        _order(D(2025, 3, 10), rows=[
            {'food_item': c.hummus, 'liter_size': c.l15, 'quantity': 1},
            {'food_item': c.matbucha, 'liter_size': c.l15, 'quantity': 1},
            {'food_item': c.kebab, 'quantity': 1},
        ])
        summaries = build_summary()
        self.assertEqual([s.category_name_en for s in filter_summary(summaries, category='salads')], ['salads'])
        found = filter_summary(summaries, search='חומ')
        self.assertEqual(len(found), 1)
        self.assertEqual(_names(found[0]), ['חומוס'])
        self.assertEqual(filter_summary(summaries, search='xyz'), [])


class SelectionTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def test_flatten_drops_zero_quantities_and_keeps_note_on_first_row(self):
        c = self.cat
        rows = flatten_selection({
            'salads': [
                {'food_item_id': c.hummus.id, 'note': 'חריף', 'liters': [
                    {'liter_size_id': c.l15.id, 'quantity': 0},
                    {'liter_size_id': c.l25.id, 'quantity': 2},
                    {'liter_size_id': c.l3.id, 'quantity': 1},
                ], 'add_ons': [{'add_on_id': c.oil.id, 'quantity': 1}]},
                {'food_item_id': c.matbucha.id, 'selected': False, 'liters': [{'liter_size_id': c.l15.id, 'quantity': 5}]},
            ],
        })
        self.assertEqual(
            [(r.liter_size_id, r.add_on_id, r.quantity) for r in rows],
            [(c.l25.id, None, 2), (c.l3.id, None, 1), (None, c.oil.id, 1)],
        )
        self.assertEqual([r.item_note for r in rows], ['חריף', '', ''])

    def test_flatten_variation_sizes(self):
        c = self.cat
        rows = flatten_selection({'sides': [{'food_item_id': c.rice.id, 'variations': [
            {'variation_id': c.white.id, 'size_big': 1, 'size_small': 0},
            {'variation_id': c.yellow.id, 'size_big': 0, 'size_small': 2},
        ]}]})
        self.assertEqual(
            [(r.variation_id, r.size_type, r.quantity) for r in rows],
            [(c.white.id, SIZE_BIG, 1), (c.yellow.id, SIZE_SMALL, 2)],
        )

    def test_max_selection_enforced(self):
        c = self.cat
        extra = [FoodItem.objects.create(category=c.middle, name=f'מנה {n}') for n in range(2)]
        entries = [{'food_item_id': i.id, 'quantity': 1} for i in [c.kebab] + extra]
        with self.assertRaises(OrderValidationError) as ctx:
            validate_selection({'middle_courses': entries})
        self.assertIn(VALIDATION['max_selection'], ctx.exception.messages[0])
        # unselected entries do not count towards the limit
        entries[2]['selected'] = False
        validate_selection({'middle_courses': entries})

    def test_references_must_belong_to_item(self):
        c = self.cat
        with self.assertRaises(OrderValidationError):
            validate_selection({'mains': [{'food_item_id': c.schnitzel.id, 'quantity': 1, 'preparation_id': c.white.id + 1000}]})
        with self.assertRaises(OrderValidationError):
            validate_selection({'sides': [{'food_item_id': c.hummus.id, 'size_big': 1}]})

    def test_payload_requires_phone_and_date(self):
        with self.assertRaises(OrderValidationError) as ctx:
            OrderInput.from_payload({'customer_name': 'x'})
        self.assertEqual(ctx.exception.messages[0], VALIDATION['phone_required'])
        self.assertEqual(len(ctx.exception.messages), 2)


class OrderServiceTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def _save(self, **overrides):
        result = order_service.save_order(OrderInput.from_payload(order_payload(self.cat, **overrides)))
        self.assertTrue(result.success, result.error)
        return result.obj

    def test_save_writes_one_row_per_liter_size(self):
        order = self._save()
        self.assertEqual(order.status, STATUS_ACTIVE)
        rows = list(order.items.order_by('id'))
        self.assertEqual(len(rows), 3)
        liters = {r.liter_size.label: r.quantity for r in rows if r.liter_size_id}
        self.assertEqual(liters, {'1.5L': 2, '2.5L': 1})
        salads = build_summary(order.order_date, order.order_date)[0]
        self.assertEqual(
            [(lq.liter_label, lq.total_quantity) for lq in salads.items[0].liter_quantities],
            [('1.5L', 2), ('2.5L', 1)],
        )

    def test_customer_upsert_by_phone(self):
        self._save()
        self._save(customer_name='דנה לוי', address='')
        self.assertEqual(Customer.objects.count(), 1)
        customer = Customer.objects.get()
        self.assertEqual(customer.name, 'דנה לוי')
        self.assertEqual(customer.address, 'הרצל 1, חיפה')

    def test_failed_item_insert_leaves_no_order(self):
        with mock.patch.object(OrderItem.objects, 'bulk_create', side_effect=DatabaseError('boom')):
            result = order_service.save_order(OrderInput.from_payload(order_payload(self.cat)))
        self.assertFalse(result.success)
        self.assertEqual(result.error, ERRORS['save_failed'])
        self.assertEqual(Order.objects.count(), 0)

    def test_empty_selection_is_rejected(self):
        payload = order_payload(self.cat, selections={
            'mains': [{'food_item_id': self.cat.schnitzel.id, 'quantity': 0}],
        })
        with self.assertRaises(OrderValidationError) as ctx:
            order_service.save_order(OrderInput.from_payload(payload))
        self.assertEqual(ctx.exception.messages, [VALIDATION['select_at_least_one']])

    def test_extra_items_only_is_enough(self):
        order = self._save(selections={}, extra_items=[{'name': 'עוגה', 'quantity': 1, 'price': '80'}])
        self.assertEqual(order.items.count(), 0)
        self.assertEqual(order.extra_items.get().price, Decimal('80'))

    def test_update_replaces_items_and_keeps_status(self):
        order = self._save()
        order_service.update_order_status(order.pk, STATUS_COMPLETED)
        payload = order_payload(self.cat, selections={'middle_courses': [{'food_item_id': self.cat.kebab.id, 'quantity': 6}]})
        result = order_service.update_order(order.pk, OrderInput.from_payload(payload))
        self.assertTrue(result.success)
        order.refresh_from_db()
        self.assertEqual(order.status, STATUS_COMPLETED)
        self.assertEqual([(r.food_item_id, r.quantity) for r in order.items.all()], [(self.cat.kebab.id, 6)])

    def test_update_missing_order(self):
        result = order_service.update_order(999, OrderInput.from_payload(order_payload(self.cat)))
        self.assertEqual(result.error, ERRORS['order_not_found'])

    def test_status_must_be_known(self):
        order = self._save()
        self.assertFalse(order_service.update_order_status(order.pk, 'shipped').success)
        self.assertTrue(order_service.update_order_status(order.pk, 'cancelled').success)

    def test_order_to_selection_round_trip(self):
        order = self._save()
        data = order_service.order_to_selection(order_service.get_order_with_items(order.pk))
        self.assertEqual(data['phone'], '050-1234567')
        hummus = data['selections']['salads'][0]
        self.assertEqual(hummus['note'], 'בלי חריף')
        self.assertEqual(sorted(l['quantity'] for l in hummus['liters']), [1, 2])
        main = data['selections']['mains'][0]
        self.assertEqual((main['quantity'], main['preparation_id']), (4, self.cat.fried.id))

    def test_total_payment(self):
        order = self._save(total_portions=40, price_per_portion='95', delivery_fee='50',
                           extra_items=[{'name': 'עוגה', 'quantity': 1, 'price': '120'}])
        self.assertEqual(order.total_payment(), Decimal('3970'))
        plain = self._save()
        self.assertIsNone(plain.total_payment())

    def test_orders_by_phone(self):
        self._save()
        self._save(phone='0529876543', phone_alt='050-1234567')
        self.assertEqual(len(order_service.get_orders_by_phone('050-1234567')), 2)


class PrintLayoutTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def test_calculated_quantity(self):
        self.assertEqual(print_layout.calculated_quantity(4, 150, 'גרם'), '600 גרם')
        self.assertEqual(print_layout.calculated_quantity(3, 3, 'חצאים'), '3 = 9')
        self.assertEqual(print_layout.calculated_quantity(2, 5, 'יח׳'), '10 יח׳')
        self.assertIsNone(print_layout.calculated_quantity(2, None, 'גרם'))

    def test_quantity_labels(self):
        c = self.cat
        items = print_layout.compose_items([
            ItemRow(food_item_id=c.hummus.id, quantity=1, liter_size_id=c.l25.id),
            ItemRow(food_item_id=c.hummus.id, quantity=2, liter_size_id=c.l15.id),
            ItemRow(food_item_id=c.hummus.id, quantity=1, add_on_id=c.oil.id),
            ItemRow(food_item_id=c.rice.id, quantity=2, variation_id=c.white.id, size_type=SIZE_BIG),
            ItemRow(food_item_id=c.schnitzel.id, quantity=4, preparation_id=c.fried.id),
        ])
        by_name = {i.display_name: i for i in items}
        self.assertEqual(by_name['חומוס'].quantity_label, '1.5L:2 2.5L:1 | שמן זית (×1)')
        self.assertEqual(by_name['אורז'].quantity_label, 'לבן ג׳:2')
        self.assertEqual(by_name['שניצל (מטוגן)'].quantity_label, '600 גרם')

    def test_variation_plain_quantity_is_printed(self):
        c = self.cat
        rows = flatten_selection({'sides': [{
            'food_item_id': c.rice.id,
            'variations': [
                {'variation_id': c.white.id, 'quantity': 3},
                {'variation_id': c.yellow.id, 'size_small': 1, 'quantity': 2},
            ],
        }]})
        rice = print_layout.compose_items(rows)[0]
        self.assertEqual(
            rice.variations,
            [{'name': 'לבן', 'size_big': 0, 'size_small': 0, 'quantity': 3},
             {'name': 'צהוב', 'size_big': 0, 'size_small': 1, 'quantity': 2}],
        )
        self.assertEqual(rice.quantity_label, 'לבן ×3 | צהוב ק׳:1 ×2')

    def test_common_liter_patterns_are_flagged(self):
        c = self.cat
        rows = [
            ItemRow(food_item_id=c.hummus.id, quantity=2, liter_size_id=c.l15.id),
            ItemRow(food_item_id=c.matbucha.id, quantity=2, liter_size_id=c.l15.id),
        ]
        doc = print_layout.compose_document({}, rows)
        self.assertEqual(doc.common_liters, [{'liters': '1.5L:2', 'names': ['חומוס', 'מטבוחה']}])
        self.assertTrue(all(i.is_bulk_applied for i in doc.section('salads').items))

    def test_section_titles_follow_category_limits(self):
        doc = print_layout.compose_document({}, [])
        self.assertEqual(doc.section('salads').title, 'סלטים: (10 לבחירה)')
        self.assertEqual(doc.section('extras').title, 'אקסטרות')
        self.cat.salads.max_selection = 12
        self.cat.salads.save()
        self.cat.middle.max_selection = None
        self.cat.middle.save()
        doc = print_layout.compose_document({}, [])
        self.assertEqual(doc.section('salads').title, 'סלטים: (12 לבחירה)')
        self.assertEqual(doc.section('middle_courses').title, 'מנות ביניים')

    def test_sections_are_padded_and_unselected_items_follow(self):
        c = self.cat
        doc = print_layout.compose_document({}, [ItemRow(food_item_id=c.matbucha.id, quantity=1, liter_size_id=c.l15.id)],
                                            include_unselected=True)
        salads = doc.section('salads')
        self.assertEqual(len(salads.rows), 28)
        self.assertEqual([(i.name, i.selected) for i in salads.items], [('מטבוחה', True), ('חומוס', False)])

    def test_extra_items_go_to_extras_section(self):
        c = self.cat
        order = order_service.save_order(OrderInput.from_payload(order_payload(
            c, extra_items=[{'name': 'פלטת פירות', 'quantity': 2, 'price': '150'}],
        ))).obj
        doc = print_layout.document_for_order(order_service.get_order_with_items(order.pk))
        extras = doc.section('extras').items
        self.assertEqual([(i.id, i.name, i.quantity_label) for i in extras], [('extra-1', 'פלטת פירות', '×2')])
        self.assertEqual(doc.header['order_number'], order.pk)
        self.assertEqual(doc.header['order_date'], '10/03/2025')

    def test_layout_operations(self):
        c = self.cat
        doc = print_layout.compose_document({}, [
            ItemRow(food_item_id=c.hummus.id, quantity=1, liter_size_id=c.l15.id),
            ItemRow(food_item_id=c.matbucha.id, quantity=1, liter_size_id=c.l25.id),
        ])
        salads = doc.section('salads')
        print_layout.move_item(doc, 'salads', str(c.matbucha.id), 0)
        self.assertEqual([i.name for i in salads.items], ['מטבוחה', 'חומוס'])
        self.assertEqual([i.sort_order for i in salads.items], [1, 2])
        print_layout.hide_item(doc, 'salads', str(c.hummus.id))
        self.assertTrue(salads.items[1].is_placeholder)
        self.assertEqual(len(salads.items), 2)
        print_layout.reset_layout(doc)
        self.assertEqual([(i.name, i.is_visible) for i in salads.items], [('חומוס', True), ('מטבוחה', True)])
        with self.assertRaises(KeyError):
            print_layout.hide_item(doc, 'salads', 'missing')

    def test_document_survives_session_serialisation(self):
        c = self.cat
        doc = print_layout.compose_document({'order_number': 7}, [ItemRow(food_item_id=c.hummus.id, quantity=1, liter_size_id=c.l15.id)])
        again = print_layout.PrintDocument.from_dict(json.loads(json.dumps(doc.to_dict())))
        self.assertEqual(again.section('salads').items[0].quantity_label, '1.5L:1')
        self.assertEqual(again.header['order_number'], 7)


class WeekBoundsTests(TestCase):
    def test_weeks_start_on_sunday(self):
        self.assertEqual(week_bounds(D(2025, 3, 12)), (D(2025, 3, 9), D(2025, 3, 15)))
        self.assertEqual(week_bounds(D(2025, 3, 9)), (D(2025, 3, 9), D(2025, 3, 15)))
        self.assertEqual(week_bounds(D(2025, 3, 15), weeks_ahead=1), (D(2025, 3, 16), D(2025, 3, 22)))


class OrderViewTests(TestCase):
    def setUp(self):
        self.cat = Catalog()
        sign_in(self.client)

    def _submit(self, payload):
        return self.client.post(reverse('mo_api_submit_order'), data=payload, content_type='application/json')

    def test_index_redirects_to_order(self):
        resp = self.client.get(reverse('manage_orders_index'))
        self.assertRedirects(resp, reverse('manage_orders_order'))

    def test_order_page_embeds_catalog(self):
        resp = self.client.get(reverse('manage_orders_order'))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, 'id="catalog-data"')
        salads = [c for c in resp.context['catalog']['categories'] if c['name_en'] == 'salads'][0]
        self.assertEqual([i['name'] for i in salads['items']], ['חומוס', 'מטבוחה'])
        self.assertIsNone(resp.context['initial_order'])

    def test_submit_order(self):
        resp = self._submit(order_payload(self.cat))
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['order_number'], data['order_id'])
        self.assertEqual(OrderItem.objects.filter(order_id=data['order_id']).count(), 3)

    def test_submit_over_limit(self):
        extra = [FoodItem.objects.create(category=self.cat.middle, name=f'מנה {n}') for n in range(2)]
        payload = order_payload(self.cat, selections={
            'middle_courses': [{'food_item_id': i.id, 'quantity': 1} for i in [self.cat.kebab] + extra],
        })
        resp = self._submit(payload)
        self.assertEqual(resp.status_code, 400)
        self.assertIn(VALIDATION['max_selection'], resp.json()['error'])
        self.assertEqual(Order.objects.count(), 0)

    def test_submit_without_phone(self):
        resp = self._submit(order_payload(self.cat, phone=''))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], VALIDATION['phone_required'])

    def test_submit_negative_quantity(self):
        payload = order_payload(self.cat)
        payload['selections']['salads'][0]['liters'][0]['quantity'] = -1
        resp = self._submit(payload)
        self.assertEqual(resp.status_code, 400)
        self.assertIn(VALIDATION['invalid_quantity'], resp.json()['error'])
        self.assertEqual(Order.objects.count(), 0)

    def test_submit_non_numeric_ids(self):
        payload = order_payload(self.cat)
        payload['selections']['mains'][0]['preparation_id'] = 'abc'
        payload['selections']['salads'][0]['liters'][1]['liter_size_id'] = 'big'
        resp = self._submit(payload)
        self.assertEqual(resp.status_code, 400)
        self.assertIn(VALIDATION['unknown_item'], resp.json()['error'])
        self.assertEqual(Order.objects.count(), 0)

    def test_update_rejects_bad_quantity(self):
        order_id = self._submit(order_payload(self.cat)).json()['order_id']
        payload = order_payload(self.cat)
        payload['selections']['mains'][0]['quantity'] = 'four'
        resp = self.client.post(reverse('mo_api_update_order', args=[order_id]), data=payload, content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(OrderItem.objects.filter(order_id=order_id).count(), 3)

    def test_submit_invalid_json(self):
        resp = self.client.post(reverse('mo_api_submit_order'), data='[1,', content_type='application/json')
        self.assertEqual(resp.status_code, 400)

    def test_submit_store_failure(self):
        with mock.patch.object(OrderItem.objects, 'bulk_create', side_effect=DatabaseError('boom')):
            resp = self._submit(order_payload(self.cat))
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()['error'], ERRORS['save_failed'])

    def test_update_delete_and_status(self):
        order_id = self._submit(order_payload(self.cat)).json()['order_id']
        resp = self.client.post(
            reverse('mo_api_update_order', args=[order_id]),
            data=order_payload(self.cat, notes='להגיע מוקדם'), content_type='application/json',
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Order.objects.get(pk=order_id).notes, 'להגיע מוקדם')

        resp = self.client.post(reverse('mo_api_order_status', args=[order_id]), data={'status': 'bogus'}, content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(reverse('mo_api_order_status', args=[order_id]), data={'status': 'completed'}, content_type='application/json')
        self.assertEqual(resp.json(), {'success': True, 'status': 'completed'})

        self.assertEqual(self.client.post(reverse('mo_api_delete_order', args=[order_id])).status_code, 200)
        self.assertEqual(self.client.post(reverse('mo_api_delete_order', args=[order_id])).status_code, 404)
        self.assertFalse(OrderItem.objects.exists())

    def test_order_detail(self):
        order_id = self._submit(order_payload(self.cat)).json()['order_id']
        data = self.client.get(reverse('mo_api_order_detail', args=[order_id])).json()['order']
        self.assertEqual(data['customer']['name'], 'דנה כהן')
        self.assertEqual(len(data['items']), 3)
        self.assertEqual(self.client.get(reverse('mo_api_order_detail', args=[999])).status_code, 404)

    def test_orders_list_filters(self):
        self._submit(order_payload(self.cat))
        self._submit(order_payload(self.cat, phone='0529999999', customer_name='אבי', order_date='2025-03-11'))
        resp = self.client.get(reverse('mo_api_orders'), {'from_date': '2025-03-10', 'to_date': '2025-03-11'})
        self.assertEqual(len(resp.json()['orders']), 2)
        resp = self.client.get(reverse('mo_api_orders'), {'from_date': '2025-03-10', 'to_date': '2025-03-11', 'phone': '9999'})
        self.assertEqual([o['customer']['name'] for o in resp.json()['orders']], ['אבי'])
        resp = self.client.get(reverse('mo_api_orders'), {'from_date': '2025-03-12', 'to_date': '2025-03-10'})
        self.assertEqual(resp.status_code, 400)

    def test_orders_by_phone_requires_phone(self):
        self.assertEqual(self.client.get(reverse('mo_api_orders_by_phone')).status_code, 400)
        self._submit(order_payload(self.cat))
        resp = self.client.get(reverse('mo_api_orders_by_phone'), {'phone': '050-1234567'})
        self.assertEqual(len(resp.json()['orders']), 1)

    def test_summary_api(self):
        self._submit(order_payload(self.cat))
        resp = self.client.get(reverse('mo_api_orders_summary'), {'from_date': '2025-03-10', 'to_date': '2025-03-10'})
        data = resp.json()
        self.assertEqual(data['from_date'], '2025-03-10')
        self.assertEqual([c['category_name_en'] for c in data['categories']], ['salads', 'mains'])
        hummus = data['categories'][0]['items'][0]
        self.assertEqual([lq['total_quantity'] for lq in hummus['liter_quantities']], [2, 1])
        self.assertEqual(data['categories'][1]['items'][0]['food_name'], 'שניצל (מטוגן)')

    def test_summary_api_store_failure_is_reported(self):
        with mock.patch('manage_orders.views.build_summary', side_effect=DatabaseError('down')):
            resp = self.client.get(reverse('mo_api_orders_summary'))
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()['error'], ERRORS['load_failed'])

    def test_summary_page(self):
        self._submit(order_payload(self.cat))
        resp = self.client.get(reverse('manage_orders_summary'), {'from_date': '2025-03-10', 'to_date': '2025-03-10'})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, 'שניצל (מטוגן)')
        self.assertContains(resp, '1.5L: 2')
        self.assertEqual(len(resp.context['orders']), 1)

    def test_summary_page_defaults_to_today(self):
        resp = self.client.get(reverse('manage_orders_summary'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context['from_date'], resp.context['to_date'])

    def test_summary_page_store_failure(self):
        with mock.patch('manage_orders.views.build_summary', side_effect=DatabaseError('down')):
            resp = self.client.get(reverse('manage_orders_summary'))
        self.assertContains(resp, ERRORS['load_failed'], status_code=503)

    def test_edit_page(self):
        order_id = self._submit(order_payload(self.cat)).json()['order_id']
        resp = self.client.get(reverse('manage_orders_edit_order', args=[order_id]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context['initial_order']['order_id'], order_id)
        self.assertContains(resp, 'id="initial-order"')
        self.assertEqual(self.client.get(reverse('manage_orders_edit_order', args=[999])).status_code, 404)


class PrintViewTests(TestCase):
    def setUp(self):
        self.cat = Catalog()
        sign_in(self.client)
        self.order = order_service.save_order(OrderInput.from_payload(order_payload(self.cat))).obj

    def test_print_saved_order(self):
        resp = self.client.get(reverse('mo_print_order', args=[self.order.pk]))
        self.assertRedirects(resp, reverse('mo_print_preview'))
        resp = self.client.get(reverse('mo_print_preview'))
        self.assertContains(resp, 'שניצל (מטוגן)')
        self.assertContains(resp, '600 גרם')
        self.assertContains(resp, '1.5L:2 2.5L:1')

    def test_preview_without_document_redirects(self):
        self.assertRedirects(self.client.get(reverse('mo_print_preview')), reverse('manage_orders_order'))

    def test_print_draft_and_layout(self):
        resp = self.client.post(reverse('mo_api_print_draft'), data=order_payload(self.cat), content_type='application/json')
        self.assertEqual(resp.json()['redirect'], reverse('mo_print_preview'))

        url = reverse('mo_api_print_layout')
        hummus = str(self.cat.hummus.id)
        resp = self.client.post(url, data={'action': 'hide', 'section': 'salads', 'item': hummus}, content_type='application/json')
        self.assertEqual(resp.status_code, 200)
        salads = [s for s in resp.json()['document']['sections'] if s['id'] == 'salads'][0]
        self.assertFalse([i for i in salads['items'] if i['id'] == hummus][0]['is_visible'])

        resp = self.client.post(url, data={'action': 'hide', 'section': 'salads', 'item': 'nope'}, content_type='application/json')
        self.assertEqual(resp.status_code, 404)
        resp = self.client.post(url, data={'action': 'spin'}, content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post(url, data={'action': 'reset'}, content_type='application/json')
        self.assertEqual(resp.status_code, 200)

    def test_draft_validation_errors(self):
        resp = self.client.post(reverse('mo_api_print_draft'), data=order_payload(self.cat, phone=''), content_type='application/json')
        self.assertEqual(resp.status_code, 400)

    def test_draft_bad_quantity_and_ids(self):
        payload = order_payload(self.cat)
        payload['selections']['salads'][0]['liters'][0]['quantity'] = -1
        resp = self.client.post(reverse('mo_api_print_draft'), data=payload, content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        payload = order_payload(self.cat)
        payload['selections']['mains'][0]['preparation_id'] = 'abc'
        resp = self.client.post(reverse('mo_api_print_draft'), data=payload, content_type='application/json')
        self.assertEqual(resp.status_code, 400)


class CommandTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def test_order_summary_command(self):
        order_service.save_order(OrderInput.from_payload(order_payload(self.cat)))
        out = StringIO()
        call_command('order_summary', '--from', '2025-03-10', '--to', '2025-03-10', stdout=out)
        text = out.getvalue()
        self.assertIn('חומוס: 1.5L:2 2.5L:1', text)
        self.assertIn('שניצל (מטוגן): x4', text)

    def test_delete_old_orders_keeps_active(self):
        old = D(2020, 1, 1)
        done = _order(old, rows=[{'food_item': self.cat.kebab, 'quantity': 1}])
        Order.objects.filter(pk=done.pk).update(status=STATUS_COMPLETED)
        active = _order(old, phone='0529999999', rows=[{'food_item': self.cat.kebab, 'quantity': 1}])
        call_command('delete_old_orders', '--days', '30', stdout=StringIO())
        self.assertEqual(list(Order.objects.values_list('pk', flat=True)), [active.pk])
        self.assertFalse(ExtraOrderItem.objects.exists())
