from django.core.management.base import BaseCommand, CommandError

from menu.models import MEASUREMENT_CHOICES, FoodItem
from menu.services.catalog import DEFAULT_SALAD_NAMES, replace_category_items


class Command(BaseCommand):
    help = "Replace every item of a category with a new list (default: the salads list)."

    def add_arguments(self, parser):
        parser.add_argument('--category', default='salads', help='Category name_en (default: salads).')
        parser.add_argument('--file', help='UTF-8 text file with one item name per line.')
        parser.add_argument('--measurement-type', default='liters', choices=[c[0] for c in MEASUREMENT_CHOICES])
        parser.add_argument('--dry-run', action='store_true', help='Do not write changes, only report.')

    def handle(self, *args, **options):
        category = options['category']
        if options.get('file'):
            with open(options['file'], encoding='utf-8') as fh:
                names = [line.strip() for line in fh if line.strip()]
        elif category == 'salads':
            names = list(DEFAULT_SALAD_NAMES)
        else:
            raise CommandError('--file is required for categories other than salads')

        current = FoodItem.objects.filter(category__name_en=category).count()
        self.stdout.write(f"Category '{category}': {current} current items, {len(names)} new items.")
        if options.get('dry_run'):
            for idx, name in enumerate(names, start=1):
                self.stdout.write(f'  {idx}. {name}')
            self.stdout.write(self.style.WARNING('Dry run: no changes written.'))
            return

        result = replace_category_items(category, names, options['measurement_type'])
        if not result.success:
            raise CommandError(result.error)
        self.stdout.write(self.style.SUCCESS(f'Inserted {result.obj} items into {category}.'))
