from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from catering.testing import Catalog, sign_in
from manage_orders.labels import ERRORS
from manage_orders.models import Customer, Order, OrderItem
from menu.models import Category, FoodItem, FoodItemAddOn, LiterSize
from menu.services import catalog


def _use_in_order(food_item, **extra):
    customer, _ = Customer.objects.get_or_create(phone='0501234567')
    order = Order.objects.create(customer=customer, order_date='2025-03-10')
    return OrderItem.objects.create(order=order, food_item=food_item, quantity=1, **extra)


class CatalogServiceTests(TestCase):
    def setUp(self):
        self.cat = Catalog()

    def test_seeded_categories_and_liter_sizes(self):
        self.assertEqual(
            [(c.name_en, c.max_selection) for c in catalog.get_categories()],
            [('salads', 10), ('middle_courses', 2), ('sides', 3), ('mains', 3), ('extras', None), ('bakery', None)],
        )
        self.assertEqual([ls.label for ls in catalog.get_liter_sizes()], ['1.5L', '2.5L', '3L', '4.5L'])

    def test_snapshot_hides_inactive_items_and_options(self):
        catalog.deactivate_food_item(self.cat.matbucha.id)
        catalog.set_option_active('add_on', self.cat.oil.id, False)
        snap = catalog.catalog_snapshot()
        salads = [c for c in snap['categories'] if c['name_en'] == 'salads'][0]
        self.assertEqual([i['name'] for i in salads['items']], ['חומוס'])
        self.assertEqual([a['name'] for a in salads['items'][0]['add_ons']], ['טחינה'])
        full = catalog.catalog_snapshot(active_only=False)
        salads = [c for c in full['categories'] if c['name_en'] == 'salads'][0]
        self.assertEqual(len(salads['items']), 2)

    def test_create_item_defaults(self):
        result = catalog.create_food_item('  סלק ', self.cat.salads)
        self.assertTrue(result.success)
        self.assertEqual((result.obj.name, result.obj.measurement_type, result.obj.sort_order), ('סלק', 'liters', 3))
        self.assertEqual(catalog.create_food_item('פירה', self.cat.sides).obj.measurement_type, 'size')
        self.assertEqual(catalog.create_food_item('עוף', self.cat.mains).obj.measurement_type, 'none')
        self.assertFalse(catalog.create_food_item('  ', self.cat.mains).success)
        self.assertFalse(catalog.create_food_item('x', self.cat.mains, 'gallons').success)

    def test_permanent_delete_refused_when_ordered(self):
        _use_in_order(self.cat.hummus, liter_size=self.cat.l15)
        result = catalog.delete_food_item_permanently(self.cat.hummus.id)
        self.assertFalse(result.success)
        self.assertEqual(result.error, ERRORS['item_in_orders'])
        self.assertTrue(catalog.delete_food_item_permanently(self.cat.matbucha.id).success)
        self.assertFalse(FoodItem.objects.filter(pk=self.cat.matbucha.id).exists())

    def test_option_delete_refused_when_ordered(self):
        _use_in_order(self.cat.schnitzel, preparation=self.cat.fried)
        self.assertFalse(catalog.delete_option_permanently('preparation', self.cat.fried.id).success)
        self.assertTrue(catalog.delete_option_permanently('preparation', self.cat.baked.id).success)

    def test_custom_liter_sizes(self):
        result = catalog.add_custom_liter_size(self.cat.hummus, '2.0')
        self.assertEqual(result.obj.label, '2L')
        self.assertTrue(result.obj.is_custom)
        self.assertEqual([ls.label for ls in catalog.get_liter_sizes(self.cat.hummus)], ['1.5L', '2L', '2.5L', '3L', '4.5L'])
        self.assertEqual(len(catalog.get_liter_sizes(self.cat.matbucha)), 4)
        self.assertFalse(catalog.remove_custom_liter_size(self.cat.l15.id).success)
        self.assertTrue(catalog.remove_custom_liter_size(result.obj.id).success)

    def test_replace_category_items(self):
        _use_in_order(self.cat.hummus, liter_size=self.cat.l15)
        result = catalog.replace_category_items('salads', ['כרוב', ' ', 'גזר'])
        self.assertTrue(result.success)
        self.assertEqual(result.obj, 2)
        items = FoodItem.objects.filter(category=self.cat.salads).order_by('id')
        self.assertEqual(
            [(i.name, i.is_active, i.sort_order) for i in items],
            [('חומוס', False, 1), ('כרוב', True, 1), ('גזר', True, 2)],
        )
        # the ordered item keeps its add-ons so old orders still resolve
        self.assertEqual(FoodItemAddOn.objects.filter(parent_food_item=self.cat.hummus).count(), 2)

    def test_replace_unknown_category(self):
        self.assertFalse(catalog.replace_category_items('soups', ['x']).success)


class MenuApiTests(TestCase):
    def setUp(self):
        self.cat = Catalog()
        sign_in(self.client)

    def _post(self, url, data=None):
        return self.client.post(url, data=data or {}, content_type='application/json')

    def test_api_menu(self):
        data = self.client.get(reverse('menu_api_catalog')).json()
        self.assertEqual(len(data['liter_sizes']), 4)
        self.assertEqual(data['categories'][0]['name_en'], 'salads')

    def test_admin_page(self):
        resp = self.client.get(reverse('menu_admin'))
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, 'שניצל')

    def test_create_and_update_item(self):
        resp = self._post(reverse('menu_api_create_food_item'), {'name': 'פירה', 'category': 'sides'})
        self.assertEqual(resp.status_code, 200)
        item = resp.json()['item']
        self.assertEqual(item['measurement_type'], 'size')

        resp = self._post(reverse('menu_api_update_food_item', args=[item['id']]), {'name': 'פירה תפו"א', 'price': '30'})
        self.assertEqual(resp.status_code, 200)
        obj = FoodItem.objects.get(pk=item['id'])
        self.assertEqual(obj.name, 'פירה תפו"א')
        self.assertEqual(obj.category, self.cat.sides)

        resp = self._post(reverse('menu_api_update_food_item', args=[item['id']]), {'measurement_type': 'gallons'})
        self.assertEqual(resp.status_code, 400)

    def test_create_item_unknown_category(self):
        resp = self._post(reverse('menu_api_create_food_item'), {'name': 'x', 'category': 'soups'})
        self.assertEqual(resp.status_code, 400)

    def test_item_actions(self):
        url = lambda action: reverse('menu_api_food_item_action', args=[self.cat.matbucha.id, action])
        self.assertEqual(self._post(url('deactivate')).status_code, 200)
        self.assertFalse(FoodItem.objects.get(pk=self.cat.matbucha.id).is_active)
        self.assertEqual(self._post(url('restore')).status_code, 200)
        self.assertEqual(self._post(url('explode')).status_code, 400)

        _use_in_order(self.cat.hummus, liter_size=self.cat.l15)
        resp = self._post(reverse('menu_api_food_item_action', args=[self.cat.hummus.id, 'delete']))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()['error'], ERRORS['item_in_orders'])

    def test_options(self):
        resp = self._post(reverse('menu_api_create_option', args=[self.cat.rice.id, 'variation']), {'name': 'ירוק'})
        self.assertEqual(resp.status_code, 200)
        option_id = resp.json()['id']
        resp = self._post(reverse('menu_api_update_option', args=['variation', option_id]), {'name': 'עם ירקות'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.cat.rice.variations.get(pk=option_id).name, 'עם ירקות')
        resp = self._post(reverse('menu_api_option_action', args=['variation', option_id, 'deactivate']))
        self.assertFalse(self.cat.rice.variations.get(pk=option_id).is_active)
        self.assertEqual(self._post(reverse('menu_api_create_option', args=[self.cat.rice.id, 'sauce']), {'name': 'x'}).status_code, 400)

    def test_add_on_measurement(self):
        resp = self._post(
            reverse('menu_api_create_option', args=[self.cat.matbucha.id, 'add_on']),
            {'name': 'שום', 'measurement_type': 'liters'},
        )
        self.assertEqual(FoodItemAddOn.objects.get(pk=resp.json()['id']).measurement_type, 'liters')

    def test_liter_size_endpoints(self):
        resp = self._post(reverse('menu_api_add_liter_size', args=[self.cat.hummus.id]), {'size': '6', 'label': '6 ליטר'})
        self.assertEqual(resp.status_code, 200)
        size_id = resp.json()['id']
        self.assertEqual(LiterSize.objects.get(pk=size_id).food_item, self.cat.hummus)
        self.assertEqual(self._post(reverse('menu_api_add_liter_size', args=[self.cat.hummus.id]), {'size': '0'}).status_code, 400)
        self.assertEqual(self._post(reverse('menu_api_remove_liter_size', args=[size_id])).status_code, 200)

    def test_replace_requires_staff(self):
        resp = self._post(reverse('menu_api_replace_category', args=['salads']), {'names': ['א']})
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(FoodItem.objects.filter(category=self.cat.salads).count(), 2)


class ReplaceCategoryTests(TestCase):
    def setUp(self):
        self.cat = Catalog()
        sign_in(self.client, email='admin@example.com', staff=True)

    def test_empty_list_uses_default_salads(self):
        resp = self.client.post(reverse('menu_api_replace_category', args=['salads']), data={'names': []}, content_type='application/json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {'success': True, 'inserted': len(catalog.DEFAULT_SALAD_NAMES)})
        names = list(FoodItem.objects.filter(category=self.cat.salads, is_active=True).order_by('sort_order').values_list('name', flat=True))
        self.assertEqual(names, catalog.DEFAULT_SALAD_NAMES)

    def test_form_post(self):
        url = reverse('menu_replace_category', args=['middle_courses'])
        self.assertEqual(self.client.get(url).status_code, 200)
        resp = self.client.post(url, {'names': 'כבד\nפילה', 'measurement_type': 'none'})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, 'replace-result')
        self.assertEqual(
            list(FoodItem.objects.filter(category__name_en='middle_courses').values_list('name', flat=True)),
            ['כבד', 'פילה'],
        )

    def test_unknown_category(self):
        resp = self.client.post(reverse('menu_api_replace_category', args=['soups']), data={'names': ['x']}, content_type='application/json')
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.json()['success'])


class ReplaceCommandTests(TestCase):
    def test_dry_run_writes_nothing(self):
        out = StringIO()
        call_command('replace_category_items', '--dry-run', stdout=out)
        self.assertIn('Dry run', out.getvalue())
        self.assertFalse(FoodItem.objects.exists())

    def test_default_salads(self):
        out = StringIO()
        call_command('replace_category_items', stdout=out)
        self.assertEqual(
            FoodItem.objects.filter(category=Category.objects.get(name_en='salads')).count(),
            len(catalog.DEFAULT_SALAD_NAMES),
        )
        self.assertIn('Inserted', out.getvalue())
