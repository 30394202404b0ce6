"""Authorization-code sign-in against the configured OAuth provider (Google by default)."""
import logging
import secrets
from urllib.parse import urlencode

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

STATE_SESSION_KEY = 'oauth_state'
REDIRECT_SESSION_KEY = 'oauth_redirect'


class OAuthError(Exception):
    pass


def authorize_url(request, redirect_uri: str) -> str:
    """Provider URL to send the browser to; the state is kept in the session."""
    state = secrets.token_urlsafe(24)
    request.session[STATE_SESSION_KEY] = state
    params = {
        'client_id': settings.OAUTH_CLIENT_ID,
        'redirect_uri': redirect_uri,
        'response_type': 'code',
        'scope': settings.OAUTH_SCOPE,
        'state': state,
        'prompt': 'select_account',
    }
    return f"{settings.OAUTH_AUTHORIZE_URL}?{urlencode(params)}"


def check_state(request, state: str) -> bool:
    expected = request.session.pop(STATE_SESSION_KEY, None)
    return bool(expected) and secrets.compare_digest(expected, state or '')


def exchange_code(code: str, redirect_uri: str) -> str:
    """Trade an authorization code for the signed-in user's e-mail."""
    timeout = settings.OAUTH_TIMEOUT_SECONDS
    try:
        r = httpx.post(settings.OAUTH_TOKEN_URL, data={
            'code': code,
            'client_id': settings.OAUTH_CLIENT_ID,
            'client_secret': settings.OAUTH_CLIENT_SECRET,
            'redirect_uri': redirect_uri,
            'grant_type': 'authorization_code',
        }, timeout=timeout)
        r.raise_for_status()
        access_token = r.json().get('access_token')
        if not access_token:
            raise OAuthError('token response without access_token')
        r = httpx.get(settings.OAUTH_USERINFO_URL, headers={'Authorization': f'Bearer {access_token}'}, timeout=timeout)
        r.raise_for_status()
        info = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning('OAuth exchange failed: %s', exc)
        raise OAuthError(str(exc)) from exc
    email = (info.get('email') or '').strip()
    if not email:
        raise OAuthError('provider returned no e-mail')
    if info.get('email_verified') is False:
        raise OAuthError('e-mail not verified')
    return email
