from django.conf import settings

from manage_orders.labels import LABELS


def app_version(request):
    """Expose application version and the Hebrew UI labels to all templates.

    APP_VERSION is loaded from the VERSION file or the APP_VERSION env var.
    """
    return {
        'APP_VERSION': getattr(settings, 'APP_VERSION', 'dev'),
        'LABELS': LABELS,
    }
