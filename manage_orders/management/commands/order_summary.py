import datetime as dt

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from manage_orders.services.summary import build_summary


def _parse_date(value):
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise CommandError(f'Invalid date {value!r}, expected YYYY-MM-DD')


class Command(BaseCommand):
    help = 'Print kitchen quantities per category for orders in a date range (default: today).'

    def add_arguments(self, parser):
        parser.add_argument('--from', dest='from_date', help='YYYY-MM-DD (inclusive)')
        parser.add_argument('--to', dest='to_date', help='YYYY-MM-DD (inclusive)')
        parser.add_argument('--customer', help='Customer name contains')
        parser.add_argument('--phone', help='Phone contains')

    def handle(self, *args, **options):
        today = timezone.localdate()
        frm = _parse_date(options['from_date']) if options.get('from_date') else None
        to = _parse_date(options['to_date']) if options.get('to_date') else None
        if frm is None and to is None:
            frm = to = today
        if frm and to and frm > to:
            raise CommandError('--from must not be after --to')

        categories = build_summary(frm, to, customer_name=options.get('customer'), phone=options.get('phone'))
        self.stdout.write(f"Summary {frm or '...'} -> {to or '...'}")
        if not categories:
            self.stdout.write(self.style.WARNING('No items.'))
            return
        for cat in categories:
            self.stdout.write(self.style.MIGRATE_HEADING(cat.category_name))
            for item in cat.items:
                parts = [f'{lq.liter_label}:{lq.total_quantity}' for lq in item.liter_quantities]
                parts += [f'{sq.size_label}:{sq.total_quantity}' for sq in item.size_quantities]
                if item.total_quantity:
                    parts.append(f'x{item.total_quantity}')
                indent = '  ' * (item.tier + 1)
                self.stdout.write(f"{indent}{item.food_name}: {' '.join(parts)}")
        self.stdout.write(self.style.SUCCESS(f'{len(categories)} categories.'))
