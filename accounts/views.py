import logging
from urllib.parse import urlencode

from django.conf import settings
from django.contrib.auth import get_user_model, login, logout
from django.http import HttpRequest, JsonResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_GET, require_POST

from manage_orders.labels import ERRORS
from . import oauth
from .models import AllowedEmail

logger = logging.getLogger(__name__)

LOGIN_ERRORS = {
    'unauthorized': ERRORS['unauthorized_email'],
    'failed': ERRORS['login_failed'],
}


def _safe_redirect(request: HttpRequest, target: str) -> str:
    if target and url_has_allowed_host_and_scheme(target, allowed_hosts={request.get_host()}, require_https=request.is_secure()):
        return target
    return settings.ORDER_FORM_DEFAULT_REDIRECT


def _login_redirect(error: str):
    return redirect(f"{reverse('accounts_login')}?{urlencode({'error': error})}")


def _callback_uri(request: HttpRequest) -> str:
    return request.build_absolute_uri(reverse('accounts_oauth_callback'))


@require_GET
def login_page(request: HttpRequest):
    if request.user.is_authenticated and not request.GET.get('error'):
        return redirect(_safe_redirect(request, request.GET.get('redirect', '')))
    return render(request, 'accounts/login.html', {
        'error': LOGIN_ERRORS.get(request.GET.get('error', '')),
        'redirect_to': _safe_redirect(request, request.GET.get('redirect', '')),
    })


@require_GET
def oauth_login(request: HttpRequest):
    request.session[oauth.REDIRECT_SESSION_KEY] = _safe_redirect(request, request.GET.get('redirect', ''))
    return redirect(oauth.authorize_url(request, _callback_uri(request)))


@require_GET
def oauth_callback(request: HttpRequest):
    """Finish the provider round trip and sign the user in if their e-mail is allowed."""
    if request.GET.get('error') or not request.GET.get('code'):
        return _login_redirect('failed')
    if not oauth.check_state(request, request.GET.get('state', '')):
        logger.warning('OAuth callback with a bad state from %s', request.META.get('REMOTE_ADDR'))
        return _login_redirect('failed')
    try:
        email = oauth.exchange_code(request.GET['code'], _callback_uri(request))
    except oauth.OAuthError:
        return _login_redirect('failed')

    if not AllowedEmail.objects.is_allowed(email):
        logger.warning('Sign-in refused for %s', email)
        logout(request)
        return _login_redirect('unauthorized')

    target = request.session.pop(oauth.REDIRECT_SESSION_KEY, None) or request.GET.get('redirect', '')
    email = email.lower()
    user, created = get_user_model().objects.get_or_create(username=email, defaults={'email': email})
    if created:
        logger.info('Created user for %s', email)
    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    return redirect(_safe_redirect(request, target))


@require_POST
def logout_view(request: HttpRequest):
    logout(request)
    return JsonResponse({'success': True})
