from django.db import models
from django.utils import timezone

MEASUREMENT_LITERS = 'liters'
MEASUREMENT_SIZE = 'size'
MEASUREMENT_NONE = 'none'
MEASUREMENT_CHOICES = [
    (MEASUREMENT_LITERS, 'ליטרים'),
    (MEASUREMENT_SIZE, 'גדול/קטן'),
    (MEASUREMENT_NONE, 'כמות'),
]


# Category
# A grouping of food items on the order form and the kitchen ticket.
# name_en is the stable identifier used by the form payload and the print
# sections (salads, middle_courses, sides, mains, extras, bakery).
class Category(models.Model):
    name = models.CharField(max_length=120, help_text="Display name (Hebrew).")
    name_en = models.CharField(max_length=60, unique=True, help_text="Stable identifier, e.g. 'salads'.")
    max_selection = models.PositiveSmallIntegerField(null=True, blank=True, help_text="How many items may be selected per order. Empty means unlimited.")
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['sort_order', 'id']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


# FoodItem
# A sellable dish. measurement_type decides how quantities are captured:
# per liter size, big/small, or a plain count.
# Mains may carry a portion multiplier so the kitchen ticket can show the
# computed amount (e.g. 4 portions x 150 = 600 גרם).
class FoodItem(models.Model):
    category = models.ForeignKey(Category, related_name='food_items', on_delete=models.PROTECT)
    name = models.CharField(max_length=120)
    measurement_type = models.CharField(max_length=10, choices=MEASUREMENT_CHOICES, default=MEASUREMENT_NONE)
    is_active = models.BooleanField(default=True, help_text="Inactive items are hidden from the order form but kept for old orders.")
    sort_order = models.PositiveIntegerField(default=0)
    portion_multiplier = models.PositiveIntegerField(null=True, blank=True, help_text="Units per portion (mains).")
    portion_unit = models.CharField(max_length=30, blank=True, default='', help_text="Unit for the computed amount, e.g. גרם, חצאים, קציצות.")
    price = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True, help_text="Default price for extras.")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['sort_order', 'id']

    def __str__(self):
        return self.name

    @property
    def has_liters(self) -> bool:
        return self.measurement_type == MEASUREMENT_LITERS


# LiterSize
# Container sizes for liter-measured items. Rows without a food item are the
# global sizes offered for every liter item; rows with a food item are that
# item's custom sizes.
class LiterSize(models.Model):
    size = models.DecimalField(max_digits=4, decimal_places=1, help_text="Volume in liters.")
    label = models.CharField(max_length=20, help_text="Printed label, e.g. '1.5L'.")
    sort_order = models.PositiveIntegerField(default=0)
    food_item = models.ForeignKey(FoodItem, related_name='custom_liter_sizes', null=True, blank=True, on_delete=models.CASCADE, help_text="Set for a size that belongs to one item only.")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['sort_order', 'size', 'id']

    def __str__(self):
        return self.label

    @property
    def is_custom(self) -> bool:
        return self.food_item_id is not None


class _ItemOption(models.Model):
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        abstract = True
        ordering = ['sort_order', 'id']

    def __str__(self):
        return self.name


# FoodItemPreparation
# A way of preparing an item (e.g. grilled / fried). Chosen per order line.
class FoodItemPreparation(_ItemOption):
    parent_food_item = models.ForeignKey(FoodItem, related_name='preparations', on_delete=models.CASCADE)


# FoodItemVariation
# A variant of a side dish (e.g. rice: white / yellow) ordered in big/small.
class FoodItemVariation(_ItemOption):
    parent_food_item = models.ForeignKey(FoodItem, related_name='variations', on_delete=models.CASCADE)


# FoodItemAddOn
# An extra ordered together with an item (e.g. tahini on a salad). Has its own
# measurement type since some add-ons are ordered by liter.
class FoodItemAddOn(_ItemOption):
    parent_food_item = models.ForeignKey(FoodItem, related_name='add_ons', on_delete=models.CASCADE)
    measurement_type = models.CharField(max_length=10, choices=MEASUREMENT_CHOICES, default=MEASUREMENT_NONE)
