from decimal import Decimal

from django import forms

from .models import MEASUREMENT_CHOICES, Category


class FoodItemForm(forms.Form):
    name = forms.CharField(max_length=120)
    category = forms.ModelChoiceField(queryset=Category.objects.all(), to_field_name='name_en')
    measurement_type = forms.ChoiceField(choices=MEASUREMENT_CHOICES, required=False)
    portion_multiplier = forms.IntegerField(min_value=1, required=False)
    portion_unit = forms.CharField(max_length=30, required=False)
    price = forms.DecimalField(max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False)


class FoodItemUpdateForm(FoodItemForm):
    """Partial update: only the keys present in the payload are applied."""
    name = forms.CharField(max_length=120, required=False)
    category = forms.ModelChoiceField(queryset=Category.objects.all(), to_field_name='name_en', required=False)
    sort_order = forms.IntegerField(min_value=0, required=False)

    def changed_fields(self) -> dict:
        return {k: v for k, v in self.cleaned_data.items() if k in self.data}


class OptionForm(forms.Form):
    name = forms.CharField(max_length=120)
    measurement_type = forms.ChoiceField(choices=MEASUREMENT_CHOICES, required=False)


class OptionUpdateForm(OptionForm):
    name = forms.CharField(max_length=120, required=False)
    sort_order = forms.IntegerField(min_value=0, required=False)

    def changed_fields(self) -> dict:
        return {k: v for k, v in self.cleaned_data.items() if k in self.data}


class CustomLiterSizeForm(forms.Form):
    size = forms.DecimalField(max_digits=4, decimal_places=1, min_value=Decimal('0.1'))
    label = forms.CharField(max_length=20, required=False)


class ReplaceCategoryItemsForm(forms.Form):
    names = forms.CharField(widget=forms.Textarea(attrs={'rows': 12}), required=False, help_text="One item per line. Empty uses the built-in salad list.")
    measurement_type = forms.ChoiceField(choices=MEASUREMENT_CHOICES, initial='liters')

    def name_list(self):
        raw = self.cleaned_data.get('names') or ''
        return [line.strip() for line in raw.splitlines() if line.strip()]
