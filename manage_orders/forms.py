import datetime as dt

from django import forms

from manage_orders.labels import LABELS

RANGE_TODAY = 'today'
RANGE_THIS_WEEK = 'this_week'
RANGE_NEXT_WEEK = 'next_week'
RANGE_CHOICES = [
    ('', '---'),
    (RANGE_TODAY, LABELS['summary']['today']),
    (RANGE_THIS_WEEK, LABELS['summary']['this_week']),
    (RANGE_NEXT_WEEK, LABELS['summary']['next_week']),
]


def week_bounds(day: dt.date, weeks_ahead: int = 0):
    """Sunday..Saturday week containing ``day`` (shifted by ``weeks_ahead``)."""
    start = day - dt.timedelta(days=(day.weekday() + 1) % 7) + dt.timedelta(weeks=weeks_ahead)
    return start, start + dt.timedelta(days=6)


def quick_range(name: str, today: dt.date):
    if name == RANGE_TODAY:
        return today, today
    if name == RANGE_THIS_WEEK:
        return week_bounds(today)
    if name == RANGE_NEXT_WEEK:
        return week_bounds(today, weeks_ahead=1)
    return None, None


class SummaryFilterForm(forms.Form):
    from_date = forms.DateField(required=False, label=LABELS['summary']['from_date'], widget=forms.DateInput(attrs={'type': 'date'}))
    to_date = forms.DateField(required=False, label=LABELS['summary']['to_date'], widget=forms.DateInput(attrs={'type': 'date'}))
    range = forms.ChoiceField(required=False, choices=RANGE_CHOICES)
    customer_name = forms.CharField(required=False, max_length=120, label=LABELS['order_form']['customer_name'])
    phone = forms.CharField(required=False, max_length=30, label=LABELS['order_form']['phone'])
    category = forms.CharField(required=False, max_length=60)
    search = forms.CharField(required=False, max_length=120)

    def clean(self):
        cleaned = super().clean()
        frm, to = cleaned.get('from_date'), cleaned.get('to_date')
        if frm and to and frm > to:
            raise forms.ValidationError('טווח תאריכים לא תקין')
        return cleaned

    def date_bounds(self, today: dt.date):
        """(from, to) after applying a quick range; explicit dates win."""
        frm, to = quick_range(self.cleaned_data.get('range') or '', today)
        return self.cleaned_data.get('from_date') or frm, self.cleaned_data.get('to_date') or to
