from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('menu', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Customer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('phone', models.CharField(help_text='Primary phone, used to find returning customers.', max_length=30, unique=True)),
                ('phone_alt', models.CharField(blank=True, default='', max_length=30)),
                ('name', models.CharField(blank=True, default='', max_length=120)),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_date', models.DateField(help_text='Delivery / event date.')),
                ('order_time', models.TimeField(blank=True, help_text='Time the kitchen has to be ready.', null=True)),
                ('customer_time', models.TimeField(blank=True, help_text='Time the customer asked for.', null=True)),
                ('delivery_address', models.CharField(blank=True, default='', max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('total_portions', models.PositiveIntegerField(blank=True, null=True)),
                ('price_per_portion', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('delivery_fee', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('status', models.CharField(choices=[('draft', 'טיוטה'), ('active', 'פעיל'), ('completed', 'הושלם'), ('cancelled', 'בוטל')], default='active', max_length=12)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('customer', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='manage_orders.customer')),
            ],
            options={
                'ordering': ['order_date', 'order_time', 'id'],
            },
        ),
        migrations.CreateModel(
            name='OrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('size_type', models.CharField(blank=True, choices=[('big', 'Big'), ('small', 'Small')], max_length=5, null=True)),
                ('quantity', models.PositiveIntegerField()),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('item_note', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='manage_orders.order')),
                ('food_item', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='menu.fooditem')),
                ('liter_size', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='menu.litersize')),
                ('preparation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='menu.fooditempreparation')),
                ('variation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='menu.fooditemvariation')),
                ('add_on', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='order_items', to='menu.fooditemaddon')),
            ],
            options={
                'ordering': ['id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gt', 0)), name='order_item_quantity_positive'),
                    models.CheckConstraint(condition=models.Q(('liter_size__isnull', True), ('size_type__isnull', True), _connector='OR'), name='order_item_liter_or_size'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExtraOrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('source_category', models.CharField(blank=True, default='', max_length=60)),
                ('name', models.CharField(max_length=120)),
                ('quantity', models.PositiveIntegerField(default=0)),
                ('size_big', models.PositiveIntegerField(default=0)),
                ('size_small', models.PositiveIntegerField(default=0)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=8)),
                ('note', models.TextField(blank=True, default='')),
                ('preparation_name', models.CharField(blank=True, default='', max_length=120)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='extra_items', to='manage_orders.order')),
                ('source_food_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='extra_order_items', to='menu.fooditem')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='ExtraOrderItemVariation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('size_big', models.PositiveIntegerField(default=0)),
                ('size_small', models.PositiveIntegerField(default=0)),
                ('extra_item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='variations', to='manage_orders.extraorderitem')),
                ('variation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to='menu.fooditemvariation')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
    ]
