from decimal import Decimal

from django.db import migrations

CATEGORIES = [
    # (name_en, name, max_selection)
    ('salads', 'סלטים', 10),
    ('middle_courses', 'מנות ביניים', 2),
    ('sides', 'תוספות', 3),
    ('mains', 'עיקריות', 3),
    ('extras', 'אקסטרות', None),
    ('bakery', 'לחם, מאפים וקינוחים', None),
]

LITER_SIZES = [
    (Decimal('1.5'), '1.5L'),
    (Decimal('2.5'), '2.5L'),
    (Decimal('3.0'), '3L'),
    (Decimal('4.5'), '4.5L'),
]


def seed(apps, schema_editor):
    Category = apps.get_model('menu', 'Category')
    LiterSize = apps.get_model('menu', 'LiterSize')
    for idx, (name_en, name, max_selection) in enumerate(CATEGORIES, start=1):
        Category.objects.get_or_create(
            name_en=name_en,
            defaults={'name': name, 'max_selection': max_selection, 'sort_order': idx},
        )
    if not LiterSize.objects.filter(food_item__isnull=True).exists():
        for idx, (size, label) in enumerate(LITER_SIZES, start=1):
            LiterSize.objects.create(size=size, label=label, sort_order=idx)


def unseed(apps, schema_editor):
    Category = apps.get_model('menu', 'Category')
    LiterSize = apps.get_model('menu', 'LiterSize')
    LiterSize.objects.filter(food_item__isnull=True, label__in=[l for _, l in LITER_SIZES]).delete()
    Category.objects.filter(name_en__in=[c[0] for c in CATEGORIES], food_items__isnull=True).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('menu', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed, unseed),
    ]
