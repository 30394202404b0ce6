import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.contrib.auth import logout
from django.utils.cache import add_never_cache_headers

from .models import AllowedEmail

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = ('/login/', '/api/auth/', '/static/', '/admin/', '/favicon.ico')


class AllowListMiddleware:
    """Only signed-in users with an allowed e-mail reach the app.

    - public paths pass untouched
    - an OAuth ``?code=`` that lands on the site root is forwarded to the callback
    - anonymous users go to the login page (API calls get 401)
    - users whose e-mail was removed from the allow-list are signed out
    - every protected response is marked uncacheable
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path
        callback = reverse('accounts_oauth_callback')
        if path == '/' and request.GET.get('code'):
            params = request.GET.copy()
            params.setdefault('redirect', settings.ORDER_FORM_DEFAULT_REDIRECT)
            return redirect(f"{callback}?{params.urlencode()}")

        if path.startswith(PUBLIC_PREFIXES):
            return self.get_response(request)

        user = request.user
        if not user.is_authenticated:
            if path.startswith('/api/'):
                return JsonResponse({'error': 'Authentication required'}, status=401)
            return redirect(f"{reverse('accounts_login')}?{urlencode({'redirect': request.get_full_path()})}")

        if not user.email or not AllowedEmail.objects.is_allowed(user.email):
            logger.warning('Signing out %s: e-mail not on the allow-list', user.email or user.get_username())
            logout(request)
            return redirect(f"{reverse('accounts_login')}?{urlencode({'error': 'unauthorized'})}")

        response = self.get_response(request)
        add_never_cache_headers(response)
        return response
