from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from manage_orders.models import STATUS_CANCELLED, STATUS_COMPLETED, Order


class Command(BaseCommand):
    help = 'Delete completed/cancelled orders dated more than --days days ago (default 365)'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=365)
        parser.add_argument('--dry-run', action='store_true', help='Do not write changes, only report.')

    def handle(self, *args, **options):
        cutoff_date = timezone.localdate() - timedelta(days=options['days'])
        qs = Order.objects.filter(order_date__lt=cutoff_date, status__in=[STATUS_COMPLETED, STATUS_CANCELLED])
        if options.get('dry_run'):
            self.stdout.write(f'{qs.count()} orders dated before {cutoff_date} would be deleted.')
            self.stdout.write(self.style.WARNING('Dry run: no changes written.'))
            return
        # Order items and extra items go with their order (CASCADE).
        deleted_orders = qs.count()
        qs.delete()
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted_orders} old orders.'))
