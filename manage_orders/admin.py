from django.contrib import admin
from .models import Customer, Order, OrderItem, ExtraOrderItem, ExtraOrderItemVariation


class OrderItemInline(admin.TabularInline):
	model = OrderItem
	extra = 0
	raw_id_fields = ("food_item",)
	fields = ("food_item","liter_size","size_type","quantity","preparation","variation","add_on","price","item_note")


class ExtraOrderItemInline(admin.TabularInline):
	model = ExtraOrderItem
	extra = 0
	fields = ("name","quantity","size_big","size_small","price","preparation_name","note")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
	list_display = ("id","order_date","order_time","customer","status","total_portions","price_per_portion","delivery_fee")
	list_filter = ("status","order_date")
	search_fields = ("customer__name","customer__phone","customer__phone_alt")
	inlines = [OrderItemInline, ExtraOrderItemInline]
	readonly_fields = ("created_at","updated_at")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
	list_display = ("id","name","phone","phone_alt","address","updated_at")
	search_fields = ("name","phone","phone_alt")


@admin.register(ExtraOrderItem)
class ExtraOrderItemAdmin(admin.ModelAdmin):
	list_display = ("id","order","name","quantity","size_big","size_small","price")


admin.site.register(ExtraOrderItemVariation)
