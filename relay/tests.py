import json
from unittest import mock

import requests
from django.conf import settings
from django.test import SimpleTestCase, override_settings

from clickuz.keywords import *
from clickuz.signature import make_sign


def signed(params):
    params = {key: str(value) for key, value in params.items()}
    params['sign_string'] = make_sign(params, settings.CLICK_SETTINGS['SECRET_KEY'])
    return params


@override_settings(ROOT_URLCONF='relay.urls')
class ClickRelayTests(SimpleTestCase):

    def _params(self, action=ACTION_PREPARE, **extra):
        params = {
            'click_trans_id': 2400001,
            'service_id': settings.CLICK_SETTINGS['SERVICE_ID'],
            'click_paydoc_id': 3300001,
            'merchant_trans_id': '1002',
            'amount': '80000',
            'action': action,
            'sign_time': '2024-05-01 10:00:00',
        }
        params.update(extra)
        return signed(params)

    def _post(self, path, params):
        return self.client.post(path, data=json.dumps(params), content_type='application/json')

    @mock.patch('relay.views.session.post')
    def test_tampered_signature_is_not_forwarded(self, post):
        params = {**self._params(), 'amount': '1000'}

        body = self._post('/click/prepare', params).json()

        self.assertEqual(body['error'], SIGN_CHECK_FAILED)
        self.assertEqual(body['merchant_prepare_id'], 0)
        post.assert_not_called()

    @mock.patch('relay.views.session.post')
    def test_tampered_complete_is_not_forwarded(self, post):
        params = {**self._params(ACTION_COMPLETE, merchant_prepare_id=5), 'merchant_prepare_id': '6'}

        body = self._post('/click/complete', params).json()

        self.assertEqual(body['error'], SIGN_CHECK_FAILED)
        post.assert_not_called()

    @mock.patch('relay.views.session.post')
    def test_prepare_is_forwarded(self, post):
        upstream = {'click_trans_id': 2400001, 'merchant_trans_id': '1002', 'merchant_prepare_id': 5,
                    'error': 0, 'error_note': 'Success'}
        post.return_value = mock.Mock(status_code=200, json=mock.Mock(return_value=upstream))
        params = self._params()

        body = self._post('/click/prepare', params).json()

        self.assertEqual(body, upstream)
        args, kwargs = post.call_args
        self.assertEqual(args[0], settings.CLICK_SETTINGS['UPSTREAM_URL'])
        self.assertEqual(kwargs['json'], {'method': METHOD_PREPARE, **params})
        self.assertEqual(kwargs['timeout'], settings.CLICK_SETTINGS['RELAY_TIMEOUT'])

    @mock.patch('relay.views.session.post')
    def test_form_and_query_params_are_merged(self, post):
        post.return_value = mock.Mock(json=mock.Mock(return_value={'error': 0}))
        params = self._params()
        sign_string = params.pop('sign_string')

        self.client.post(f'/click/prepare?sign_string={sign_string}', data=params)

        self.assertEqual(post.call_args.kwargs['json']['sign_string'], sign_string)

    @mock.patch('relay.views.session.post')
    def test_query_string_overrides_body(self, post):
        post.return_value = mock.Mock(json=mock.Mock(return_value={'error': 0}))
        params = self._params()

        body = self.client.post('/click/prepare?amount=1000', data=params).json()

        self.assertEqual(body['error'], SIGN_CHECK_FAILED)
        post.assert_not_called()

        sign_string = params['sign_string']
        self.client.post(f'/click/prepare?amount={params["amount"]}', data={**params, 'amount': '1000'})
        self.assertEqual(post.call_args.kwargs['json']['amount'], '80000')
        self.assertEqual(post.call_args.kwargs['json']['sign_string'], sign_string)

    @mock.patch('relay.views.session.post')
    def test_complete_response_is_normalized(self, post):
        upstream = {'click_trans_id': '2400001', 'merchant_trans_id': '1002', 'merchant_confirm_id': '5',
                    'error': 0, 'error_note': 'Success'}
        post.return_value = mock.Mock(json=mock.Mock(return_value=upstream))

        body = self._post('/click/complete', self._params(ACTION_COMPLETE, merchant_prepare_id=5)).json()

        self.assertEqual(body['click_trans_id'], 2400001)
        self.assertEqual(body['merchant_confirm_id'], 5)
        self.assertEqual(body['merchant_prepare_id'], 5)
        self.assertEqual(body['click_paydoc_id'], 3300001)
        self.assertEqual(body['merchant_trans_id'], '1002')
        self.assertEqual(body['error'], SUCCESS)

    @mock.patch('relay.views.session.post', side_effect=requests.Timeout('slow'))
    def test_upstream_failure(self, post):
        prepare = self._post('/click/prepare', self._params()).json()
        complete = self._post('/click/complete', self._params(ACTION_COMPLETE, merchant_prepare_id=5)).json()

        self.assertEqual(prepare['error'], INTERNAL_ERROR)
        self.assertEqual(prepare['merchant_prepare_id'], 0)
        self.assertEqual(complete['error'], INTERNAL_ERROR)
        self.assertEqual(complete['merchant_confirm_id'], 0)
        self.assertEqual(complete['click_paydoc_id'], 3300001)

    @mock.patch('relay.views.session.post')
    def test_upstream_http_error(self, post):
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError('502')
        post.return_value = response

        self.assertEqual(self._post('/click/prepare', self._params()).json()['error'], INTERNAL_ERROR)

    def test_health(self):
        body = self.client.get('/health').json()

        self.assertEqual(body['status'], 'ok')
        self.assertIn('timestamp', body)
        self.assertEqual(body['config']['service_id'], settings.CLICK_SETTINGS['SERVICE_ID'])
        self.assertEqual(body['config']['upstream_url'], settings.CLICK_SETTINGS['UPSTREAM_URL'])
