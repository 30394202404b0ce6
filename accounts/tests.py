from unittest import mock

import httpx
from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from accounts import oauth
from accounts.models import AllowedEmail
from catering.testing import sign_in
from manage_orders.labels import ERRORS


def _response(payload):
    resp = mock.Mock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


class AllowListMiddlewareTests(TestCase):
    def test_anonymous_page_goes_to_login(self):
        resp = self.client.get(reverse('manage_orders_order'))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp['Location'], '/login/?redirect=%2Forder%2F')

    def test_anonymous_api_gets_401(self):
        resp = self.client.get(reverse('mo_api_orders'))
        self.assertEqual(resp.status_code, 401)

    def test_login_page_is_public(self):
        resp = self.client.get(reverse('accounts_login'), {'error': 'unauthorized'})
        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, ERRORS['unauthorized_email'])

    def test_allowed_user_passes_and_response_is_not_cached(self):
        sign_in(self.client)
        resp = self.client.get(reverse('manage_orders_order'))
        self.assertEqual(resp.status_code, 200)
        self.assertIn('no-store', resp['Cache-Control'])

    def test_removed_email_is_signed_out(self):
        sign_in(self.client, email='former@example.com')
        AllowedEmail.objects.filter(email='former@example.com').delete()
        resp = self.client.get(reverse('manage_orders_order'))
        self.assertEqual(resp['Location'], '/login/?error=unauthorized')
        self.assertEqual(self.client.get(reverse('mo_api_orders')).status_code, 401)

    def test_user_without_email_is_signed_out(self):
        user = get_user_model().objects.create_user(username='noemail')
        self.client.force_login(user)
        resp = self.client.get(reverse('manage_orders_order'))
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp['Location'], '/login/?error=unauthorized')
        self.assertNotIn('_auth_user_id', self.client.session)

    def test_allow_list_ignores_case(self):
        AllowedEmail.objects.create(email='Chef@Example.COM')
        self.assertTrue(AllowedEmail.objects.is_allowed('chef@example.com'))
        self.assertTrue(AllowedEmail.objects.is_allowed('CHEF@example.com'))
        self.assertFalse(AllowedEmail.objects.is_allowed(''))

    def test_stray_code_is_forwarded_to_callback(self):
        resp = self.client.get('/', {'code': 'abc', 'state': 'xyz'})
        self.assertEqual(resp.status_code, 302)
        location = resp['Location']
        self.assertTrue(location.startswith(reverse('accounts_oauth_callback') + '?'))
        self.assertIn('code=abc', location)
        self.assertIn('redirect=%2Forder%2F', location)

    def test_code_on_other_paths_is_not_forwarded(self):
        sign_in(self.client)
        resp = self.client.get(reverse('manage_orders_order'), {'code': 'abc'})
        self.assertEqual(resp.status_code, 200)


class OAuthFlowTests(TestCase):
    def setUp(self):
        AllowedEmail.objects.create(email='cook@example.com')

    def _with_state(self, state='st-1', redirect_to='/summary/'):
        session = self.client.session
        session[oauth.STATE_SESSION_KEY] = state
        session[oauth.REDIRECT_SESSION_KEY] = redirect_to
        session.save()

    def test_login_redirects_to_provider(self):
        resp = self.client.get(reverse('accounts_oauth_login'), {'redirect': '/summary/'})
        self.assertEqual(resp.status_code, 302)
        self.assertTrue(resp['Location'].startswith(settings.OAUTH_AUTHORIZE_URL))
        self.assertIn('state=', resp['Location'])
        self.assertEqual(self.client.session[oauth.REDIRECT_SESSION_KEY], '/summary/')

    def test_login_drops_offsite_redirect(self):
        self.client.get(reverse('accounts_oauth_login'), {'redirect': 'https://evil.example.com/'})
        self.assertEqual(self.client.session[oauth.REDIRECT_SESSION_KEY], settings.ORDER_FORM_DEFAULT_REDIRECT)

    @mock.patch('accounts.oauth.httpx.get')
    @mock.patch('accounts.oauth.httpx.post')
    def test_callback_signs_in_allowed_user(self, post, get):
        post.return_value = _response({'access_token': 'tok'})
        get.return_value = _response({'email': 'Cook@Example.com', 'email_verified': True})
        self._with_state()
        resp = self.client.get(reverse('accounts_oauth_callback'), {'code': 'c0de', 'state': 'st-1'})
        self.assertEqual(resp.status_code, 302)
        self.assertEqual(resp['Location'], '/summary/')
        user = get_user_model().objects.get(username='cook@example.com')
        self.assertEqual(user.email, 'cook@example.com')
        self.assertEqual(int(self.client.session['_auth_user_id']), user.pk)
        self.assertEqual(post.call_args.kwargs['data']['code'], 'c0de')
        self.assertEqual(get.call_args.kwargs['headers'], {'Authorization': 'Bearer tok'})

    @mock.patch('accounts.oauth.httpx.get')
    @mock.patch('accounts.oauth.httpx.post')
    def test_callback_refuses_unknown_email(self, post, get):
        post.return_value = _response({'access_token': 'tok'})
        get.return_value = _response({'email': 'stranger@example.com'})
        self._with_state()
        resp = self.client.get(reverse('accounts_oauth_callback'), {'code': 'c0de', 'state': 'st-1'})
        self.assertEqual(resp['Location'], '/login/?error=unauthorized')
        self.assertFalse(get_user_model().objects.filter(username='stranger@example.com').exists())

    @mock.patch('accounts.oauth.httpx.post')
    def test_callback_with_bad_state(self, post):
        self._with_state(state='expected')
        resp = self.client.get(reverse('accounts_oauth_callback'), {'code': 'c0de', 'state': 'forged'})
        self.assertEqual(resp['Location'], '/login/?error=failed')
        post.assert_not_called()

    @mock.patch('accounts.oauth.httpx.post', side_effect=httpx.ConnectError('provider down'))
    def test_callback_provider_error(self, post):
        self._with_state()
        resp = self.client.get(reverse('accounts_oauth_callback'), {'code': 'c0de', 'state': 'st-1'})
        self.assertEqual(resp['Location'], '/login/?error=failed')

    def test_callback_without_code(self):
        resp = self.client.get(reverse('accounts_oauth_callback'), {'error': 'access_denied'})
        self.assertEqual(resp['Location'], '/login/?error=failed')


class LogoutTests(TestCase):
    def test_logout(self):
        sign_in(self.client)
        resp = self.client.post(reverse('accounts_logout'))
        self.assertEqual(resp.json(), {'success': True})
        self.assertEqual(self.client.get(reverse('mo_api_orders')).status_code, 401)

    def test_logout_requires_post(self):
        self.assertEqual(self.client.get(reverse('accounts_logout')).status_code, 405)
