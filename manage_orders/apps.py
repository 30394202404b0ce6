from django.apps import AppConfig


class ManageOrdersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'manage_orders'
    verbose_name = 'הזמנות'
