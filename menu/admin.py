from django.contrib import admin
from .models import Category, FoodItem, FoodItemAddOn, FoodItemPreparation, FoodItemVariation, LiterSize


class PreparationInline(admin.TabularInline):
    model = FoodItemPreparation
    extra = 0


class VariationInline(admin.TabularInline):
    model = FoodItemVariation
    extra = 0


class AddOnInline(admin.TabularInline):
    model = FoodItemAddOn
    extra = 0


class CustomLiterSizeInline(admin.TabularInline):
    model = LiterSize
    extra = 0
    fields = ('size', 'label', 'sort_order')


@admin.register(FoodItem)
class FoodItemAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'measurement_type', 'is_active', 'sort_order', 'portion_multiplier', 'portion_unit')
    list_filter = ('category', 'measurement_type', 'is_active')
    search_fields = ('name',)
    inlines = [PreparationInline, VariationInline, AddOnInline, CustomLiterSizeInline]


# Remaining catalog tables: list every field
for model in [Category, LiterSize, FoodItemPreparation, FoodItemVariation, FoodItemAddOn]:
    class AllFieldsAdmin(admin.ModelAdmin):
        list_display = [field.name for field in model._meta.fields]
    admin.site.register(model, AllFieldsAdmin)
