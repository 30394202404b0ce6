from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone

from menu.models import FoodItem, FoodItemAddOn, FoodItemPreparation, FoodItemVariation, LiterSize

STATUS_DRAFT = 'draft'
STATUS_ACTIVE = 'active'
STATUS_COMPLETED = 'completed'
STATUS_CANCELLED = 'cancelled'
STATUS_CHOICES = [
	(STATUS_DRAFT, 'טיוטה'),
	(STATUS_ACTIVE, 'פעיל'),
	(STATUS_COMPLETED, 'הושלם'),
	(STATUS_CANCELLED, 'בוטל'),
]

SIZE_BIG = 'big'
SIZE_SMALL = 'small'
SIZE_CHOICES = [(SIZE_BIG, 'Big'), (SIZE_SMALL, 'Small')]


class Customer(models.Model):
	phone = models.CharField(max_length=30, unique=True, help_text="Primary phone, used to find returning customers.")
	phone_alt = models.CharField(max_length=30, blank=True, default='')
	name = models.CharField(max_length=120, blank=True, default='')
	address = models.CharField(max_length=255, blank=True, default='')
	notes = models.TextField(blank=True, default='')
	created_at = models.DateTimeField(default=timezone.now)
	updated_at = models.DateTimeField(auto_now=True)

	def __str__(self):
		return f"{self.name or '-'} ({self.phone})"


class Order(models.Model):
	customer = models.ForeignKey(Customer, related_name='orders', null=True, blank=True, on_delete=models.SET_NULL)
	order_date = models.DateField(help_text="Delivery / event date.")
	order_time = models.TimeField(null=True, blank=True, help_text="Time the kitchen has to be ready.")
	customer_time = models.TimeField(null=True, blank=True, help_text="Time the customer asked for.")
	delivery_address = models.CharField(max_length=255, blank=True, default='')
	notes = models.TextField(blank=True, default='')
	total_portions = models.PositiveIntegerField(null=True, blank=True)
	price_per_portion = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
	delivery_fee = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
	status = models.CharField(max_length=12, default=STATUS_ACTIVE, choices=STATUS_CHOICES)
	created_at = models.DateTimeField(default=timezone.now)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ['order_date', 'order_time', 'id']

	def __str__(self):
		return f"Order #{self.pk} ({self.order_date:%Y-%m-%d})"

	@property
	def order_number(self):
		return self.pk

	def total_payment(self):
		"""Portions x price per portion + delivery fee + priced extras.

		Extras are the extra_items lines plus priced items of the extras
		category. Without portion pricing the total is the extras alone, or
		None when nothing is priced.
		"""
		extras = sum((e.price for e in self.extra_items.all() if e.price), Decimal('0'))
		extras += sum(
			(i.price for i in self.items.all() if i.price and i.food_item.category.name_en == 'extras'),
			Decimal('0'),
		)
		if self.total_portions and self.price_per_portion:
			return self.price_per_portion * self.total_portions + (self.delivery_fee or Decimal('0')) + extras
		return extras if extras > 0 else None


class OrderItem(models.Model):
	order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
	food_item = models.ForeignKey(FoodItem, related_name='order_items', on_delete=models.PROTECT)
	liter_size = models.ForeignKey(LiterSize, related_name='order_items', null=True, blank=True, on_delete=models.PROTECT)
	size_type = models.CharField(max_length=5, choices=SIZE_CHOICES, null=True, blank=True)
	quantity = models.PositiveIntegerField()
	price = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
	item_note = models.TextField(blank=True, default='')
	preparation = models.ForeignKey(FoodItemPreparation, related_name='order_items', null=True, blank=True, on_delete=models.PROTECT)
	variation = models.ForeignKey(FoodItemVariation, related_name='order_items', null=True, blank=True, on_delete=models.PROTECT)
	add_on = models.ForeignKey(FoodItemAddOn, related_name='order_items', null=True, blank=True, on_delete=models.PROTECT)
	created_at = models.DateTimeField(default=timezone.now)

	class Meta:
		ordering = ['id']
		constraints = [
			models.CheckConstraint(condition=Q(quantity__gt=0), name='order_item_quantity_positive'),
			models.CheckConstraint(
				condition=Q(liter_size__isnull=True) | Q(size_type__isnull=True),
				name='order_item_liter_or_size',
			),
		]

	def __str__(self):
		return f"{self.food_item_id} x{self.quantity}"


# Free-form lines ("extras") that are priced individually and may not be on
# the menu at all. source_* remember where the line was picked from.
class ExtraOrderItem(models.Model):
	order = models.ForeignKey(Order, related_name='extra_items', on_delete=models.CASCADE)
	source_food_item = models.ForeignKey(FoodItem, related_name='extra_order_items', null=True, blank=True, on_delete=models.SET_NULL)
	source_category = models.CharField(max_length=60, blank=True, default='')
	name = models.CharField(max_length=120)
	quantity = models.PositiveIntegerField(default=0)
	size_big = models.PositiveIntegerField(default=0)
	size_small = models.PositiveIntegerField(default=0)
	price = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0'))
	note = models.TextField(blank=True, default='')
	preparation_name = models.CharField(max_length=120, blank=True, default='')
	created_at = models.DateTimeField(default=timezone.now)

	class Meta:
		ordering = ['id']

	def __str__(self):
		return self.name


class ExtraOrderItemVariation(models.Model):
	extra_item = models.ForeignKey(ExtraOrderItem, related_name='variations', on_delete=models.CASCADE)
	variation = models.ForeignKey(FoodItemVariation, null=True, blank=True, on_delete=models.SET_NULL)
	name = models.CharField(max_length=120)
	size_big = models.PositiveIntegerField(default=0)
	size_small = models.PositiveIntegerField(default=0)

	class Meta:
		ordering = ['id']

	def __str__(self):
		return self.name
