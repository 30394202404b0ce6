"""Shared fixtures for the app test suites."""
from decimal import Decimal

from django.contrib.auth import get_user_model

from accounts.models import AllowedEmail
from menu.models import Category, FoodItem, FoodItemAddOn, FoodItemPreparation, FoodItemVariation, LiterSize


def sign_in(client, email='cook@example.com', staff=False):
    """Create an allow-listed user and log the test client in as them."""
    AllowedEmail.objects.get_or_create(email=email)
    user, _ = get_user_model().objects.get_or_create(
        username=email, defaults={'email': email, 'is_staff': staff, 'is_superuser': staff},
    )
    client.force_login(user)
    return user


def liter(label):
    return LiterSize.objects.get(label=label, food_item__isnull=True)


class Catalog:
    """A small menu: two salads (one with an add-on), a side with variations,
    a main with preparations and portion pricing, a middle course and an extra."""

    def __init__(self):
        self.salads = Category.objects.get(name_en='salads')
        self.middle = Category.objects.get(name_en='middle_courses')
        self.sides = Category.objects.get(name_en='sides')
        self.mains = Category.objects.get(name_en='mains')
        self.extras = Category.objects.get(name_en='extras')

        self.hummus = FoodItem.objects.create(category=self.salads, name='חומוס', measurement_type='liters', sort_order=1)
        self.matbucha = FoodItem.objects.create(category=self.salads, name='מטבוחה', measurement_type='liters', sort_order=2)
        self.tahini = FoodItemAddOn.objects.create(parent_food_item=self.hummus, name='טחינה', measurement_type='liters')
        self.oil = FoodItemAddOn.objects.create(parent_food_item=self.hummus, name='שמן זית', measurement_type='none')

        self.rice = FoodItem.objects.create(category=self.sides, name='אורז', measurement_type='size', sort_order=1)
        self.white = FoodItemVariation.objects.create(parent_food_item=self.rice, name='לבן')
        self.yellow = FoodItemVariation.objects.create(parent_food_item=self.rice, name='צהוב')

        self.schnitzel = FoodItem.objects.create(
            category=self.mains, name='שניצל', measurement_type='none', sort_order=1,
            portion_multiplier=150, portion_unit='גרם',
        )
        self.fried = FoodItemPreparation.objects.create(parent_food_item=self.schnitzel, name='מטוגן')
        self.baked = FoodItemPreparation.objects.create(parent_food_item=self.schnitzel, name='אפוי')

        self.kebab = FoodItem.objects.create(category=self.middle, name='קבב', measurement_type='none', sort_order=1)
        self.salmon = FoodItem.objects.create(category=self.extras, name='סלמון', measurement_type='none', sort_order=1, price=Decimal('120'))

        self.l15 = liter('1.5L')
        self.l25 = liter('2.5L')
        self.l3 = liter('3L')


def order_payload(catalog, **overrides):
    """A valid order form payload: one salad in two liter sizes and a main."""
    payload = {
        'customer_name': 'דנה כהן',
        'phone': '050-1234567',
        'address': 'הרצל 1, חיפה',
        'order_date': '2025-03-10',
        'order_time': '12:00',
        'notes': '',
        'selections': {
            'salads': [{
                'food_item_id': catalog.hummus.id,
                'liters': [
                    {'liter_size_id': catalog.l15.id, 'quantity': 2},
                    {'liter_size_id': catalog.l25.id, 'quantity': 1},
                ],
                'note': 'בלי חריף',
            }],
            'mains': [{'food_item_id': catalog.schnitzel.id, 'quantity': 4, 'preparation_id': catalog.fried.id}],
        },
        'extra_items': [],
    }
    payload.update(overrides)
    return payload
