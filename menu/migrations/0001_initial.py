import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


MEASUREMENT_CHOICES = [('liters', 'ליטרים'), ('size', 'גדול/קטן'), ('none', 'כמות')]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='Display name (Hebrew).', max_length=120)),
                ('name_en', models.CharField(help_text="Stable identifier, e.g. 'salads'.", max_length=60, unique=True)),
                ('max_selection', models.PositiveSmallIntegerField(blank=True, help_text='How many items may be selected per order. Empty means unlimited.', null=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'ordering': ['sort_order', 'id'],
                'verbose_name_plural': 'categories',
            },
        ),
        migrations.CreateModel(
            name='FoodItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('measurement_type', models.CharField(choices=MEASUREMENT_CHOICES, default='none', max_length=10)),
                ('is_active', models.BooleanField(default=True, help_text='Inactive items are hidden from the order form but kept for old orders.')),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('portion_multiplier', models.PositiveIntegerField(blank=True, help_text='Units per portion (mains).', null=True)),
                ('portion_unit', models.CharField(blank=True, default='', help_text='Unit for the computed amount, e.g. גרם, חצאים, קציצות.', max_length=30)),
                ('price', models.DecimalField(blank=True, decimal_places=2, help_text='Default price for extras.', max_digits=8, null=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='food_items', to='menu.category')),
            ],
            options={
                'ordering': ['sort_order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='LiterSize',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('size', models.DecimalField(decimal_places=1, help_text='Volume in liters.', max_digits=4)),
                ('label', models.CharField(help_text="Printed label, e.g. '1.5L'.", max_length=20)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('food_item', models.ForeignKey(blank=True, help_text='Set for a size that belongs to one item only.', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='custom_liter_sizes', to='menu.fooditem')),
            ],
            options={
                'ordering': ['sort_order', 'size', 'id'],
            },
        ),
        migrations.CreateModel(
            name='FoodItemPreparation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('parent_food_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='preparations', to='menu.fooditem')),
            ],
            options={
                'ordering': ['sort_order', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='FoodItemVariation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('parent_food_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variations', to='menu.fooditem')),
            ],
            options={
                'ordering': ['sort_order', 'id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='FoodItemAddOn',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('measurement_type', models.CharField(choices=MEASUREMENT_CHOICES, default='none', max_length=10)),
                ('parent_food_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='add_ons', to='menu.fooditem')),
            ],
            options={
                'ordering': ['sort_order', 'id'],
                'abstract': False,
            },
        ),
    ]
