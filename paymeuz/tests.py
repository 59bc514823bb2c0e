import base64
import json

from django.conf import settings
from django.test import TestCase, override_settings
from django.urls import reverse

from account.models import UserModel
from clickuz.keywords import STATE_CONFIRMED
from clickuz.models import ClickTransaction
from clickuz.services import apply_click_completion
from config.helpers import current_timestamp
from shop.models import OrderModel
from shop.services import approve_order
from .keywords import *
from .models import PaymeTransaction
from .payme.service import PaymeService, PaymeError


def basic_auth(login, key):
    return 'Basic ' + base64.b64encode(f'{login}:{key}'.encode()).decode()


class PaymeCallbackTests(TestCase):
    def setUp(self):
        self.user = UserModel.objects.create(username='tg_5001', telegram_id=5001)
        self.order = OrderModel.objects.create(
            order_number='AL-1001',
            user=self.user,
            user_telegram_id=5001,
            total=80000,
            payme_order_id='1001',
        )

    def _post(self, payload, auth=None, raw=None, **extra):
        if auth is None:
            auth = basic_auth('Paycom', 'payme-test-key')
        return self.client.post(
            reverse('payme-callback'),
            data=raw if raw is not None else json.dumps(payload),
            content_type='application/json',
            HTTP_AUTHORIZATION=auth,
            **extra
        )

    def _call(self, method, params, request_id=1):
        resp = self._post({'jsonrpc': '2.0', 'id': request_id, 'method': method, 'params': params})
        self.assertEqual(resp.status_code, 200)
        return resp.json()

    def _create(self, transaction_id='6650a1f0c0ffee0001', amount=8000000):
        return self._call(METHOD_CREATE_TRANSACTION, {
            'id': transaction_id,
            'time': current_timestamp(),
            'amount': amount,
            'account': {'order_id': '1001'},
        })

    def test_wrong_key_returns_auth_error_with_http_200(self):
        resp = self._post({'id': 5, 'method': METHOD_CHECK_TRANSACTION, 'params': {}},
                          auth=basic_auth('Paycom', 'wrong'))
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body['id'], 5)
        self.assertEqual(body['error']['code'], AUTH_FAILED)

    def test_merchant_id_login_is_accepted(self):
        resp = self._post(
            {'id': 1, 'method': METHOD_CHECK_PERFORM_TRANSACTION,
             'params': {'amount': 8000000, 'account': {'order_id': '1001'}}},
            auth=basic_auth(settings.PAYMEUZ_SETTINGS['MERCHANT_ID'], 'payme-test-key'),
        )
        self.assertEqual(resp.json()['result'], {'allow': True})

    def test_missing_keys_returns_configuration_error(self):
        with override_settings(PAYMEUZ_SETTINGS={**settings.PAYMEUZ_SETTINGS, 'KEY': ''}):
            body = self._post({'id': 1, 'method': METHOD_CHECK_TRANSACTION, 'params': {}}).json()
        self.assertEqual(body['error']['code'], SYSTEM_ERROR)
        self.assertEqual(body['error']['message'], CONFIGURATION_MISSING_MESSAGE)

    def test_malformed_json(self):
        body = self._post(None, raw='{"id": 1, "method": ').json()
        self.assertEqual(body['error']['code'], PARSE_ERROR)

    def test_unknown_method(self):
        body = self._call('ChangePassword', {})
        self.assertEqual(body['error']['code'], METHOD_NOT_FOUND)

    def test_check_perform_allows_pending_order(self):
        body = self._call(METHOD_CHECK_PERFORM_TRANSACTION, {
            'amount': 8000000,
            'account': {'order_id': '1001'},
        })
        self.assertEqual(body, {'jsonrpc': '2.0', 'id': 1, 'result': {'allow': True}})

    def test_check_perform_unknown_order(self):
        body = self._call(METHOD_CHECK_PERFORM_TRANSACTION, {
            'amount': 8000000,
            'account': {'order_id': '9999'},
        })
        self.assertEqual(body['error']['code'], ORDER_NOT_FOUND)
        self.assertEqual(body['error']['message']['uz'], ORDER_NOT_FOUND_MESSAGE['uz'])

    def test_check_perform_wrong_amount(self):
        body = self._call(METHOD_CHECK_PERFORM_TRANSACTION, {
            'amount': 80000,
            'account': {'order_id': '1001'},
        })
        self.assertEqual(body['error']['code'], INVALID_AMOUNT)

    def test_check_perform_on_order_paid_with_payme(self):
        OrderModel.objects.filter(pk=self.order.pk).update(
            status=OrderModel.Status.APPROVED,
            payme_transaction_id='6650a1f0c0ffee0001',
        )
        body = self._call(METHOD_CHECK_PERFORM_TRANSACTION, {
            'amount': 8000000,
            'account': {'order_id': '1001'},
        })
        self.assertEqual(body['error']['code'], ORDER_ALREADY_PAID)

    def test_create_transaction_is_idempotent(self):
        first = self._create()
        second = self._create()

        self.assertEqual(first['result']['state'], CREATE_TRANSACTION)
        self.assertEqual(first['result'], second['result'])
        self.assertEqual(PaymeTransaction.objects.count(), 1)

        self.order.refresh_from_db()
        self.assertEqual(self.order.payme_transaction_id, '6650a1f0c0ffee0001')
        self.assertEqual(self.order.payme_state, CREATE_TRANSACTION)
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)

    def test_second_transaction_on_busy_order(self):
        self._create()
        body = self._create(transaction_id='6650a1f0c0ffee0002')
        self.assertEqual(body['error']['code'], ORDER_BUSY)

    def test_expired_transaction_is_cancelled_on_redelivery(self):
        old = current_timestamp() - settings.PAYMEUZ_SETTINGS['TRANSACTION_TIMEOUT'] - 1000
        PaymeTransaction.objects.create(
            transaction_id='6650a1f0c0ffee0003',
            order=self.order,
            amount=8000000,
            time=old,
            create_time=old,
        )

        body = self._create(transaction_id='6650a1f0c0ffee0003')
        self.assertEqual(body['error']['code'], UNABLE_TO_PERFORM_OPERATION)

        payme_transaction = PaymeTransaction.objects.get(transaction_id='6650a1f0c0ffee0003')
        self.assertEqual(payme_transaction.state, CANCEL_CREATE_TRANSACTION)
        self.assertEqual(payme_transaction.reason, REASON_TIMEOUT)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.REJECTED)

    def test_perform_approves_order_and_awards_bonus_once(self):
        self._create()

        with self.captureOnCommitCallbacks(execute=True):
            first = self._call(METHOD_PERFORM_TRANSACTION, {'id': '6650a1f0c0ffee0001'})
        with self.captureOnCommitCallbacks(execute=True):
            second = self._call(METHOD_PERFORM_TRANSACTION, {'id': '6650a1f0c0ffee0001'})

        self.assertEqual(first['result']['state'], CLOSE_TRANSACTION)
        self.assertEqual(first['result'], second['result'])

        self.order.refresh_from_db()
        self.user.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.payme_state, CLOSE_TRANSACTION)
        self.assertTrue(self.order.bonus_awarded)
        self.assertEqual(self.user.bonus_points, 2400)

    def test_perform_unknown_transaction(self):
        body = self._call(METHOD_PERFORM_TRANSACTION, {'id': 'nope'})
        self.assertEqual(body['error']['code'], TRANSACTION_NOT_FOUND)

    def test_cancel_before_perform(self):
        self._create()
        body = self._call(METHOD_CANCEL_TRANSACTION, {'id': '6650a1f0c0ffee0001', 'reason': REASON_TIMEOUT})

        self.assertEqual(body['result']['state'], CANCEL_CREATE_TRANSACTION)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.REJECTED)
        self.assertEqual(self.order.payme_cancel_reason, REASON_TIMEOUT)

        again = self._call(METHOD_CANCEL_TRANSACTION, {'id': '6650a1f0c0ffee0001', 'reason': REASON_TIMEOUT})
        self.assertEqual(again['result'], body['result'])

    def test_cancel_after_perform(self):
        self._create()
        self._call(METHOD_PERFORM_TRANSACTION, {'id': '6650a1f0c0ffee0001'})
        body = self._call(METHOD_CANCEL_TRANSACTION, {'id': '6650a1f0c0ffee0001', 'reason': REASON_REFUND})

        self.assertEqual(body['result']['state'], CANCEL_CLOSE_TRANSACTION)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.REJECTED)

    def test_cancel_after_delivery_is_refused(self):
        self._create()
        self._call(METHOD_PERFORM_TRANSACTION, {'id': '6650a1f0c0ffee0001'})
        OrderModel.objects.filter(pk=self.order.pk).update(status=OrderModel.Status.DELIVERED)

        body = self._call(METHOD_CANCEL_TRANSACTION, {'id': '6650a1f0c0ffee0001', 'reason': REASON_REFUND})
        self.assertEqual(body['error']['code'], UNABLE_TO_CANCEL)

    def test_check_transaction(self):
        created = self._create()['result']
        body = self._call(METHOD_CHECK_TRANSACTION, {'id': '6650a1f0c0ffee0001'})

        self.assertEqual(body['result']['create_time'], created['create_time'])
        self.assertEqual(body['result']['transaction'], created['transaction'])
        self.assertEqual(body['result']['perform_time'], 0)
        self.assertEqual(body['result']['cancel_time'], 0)
        self.assertEqual(body['result']['state'], CREATE_TRANSACTION)
        self.assertIsNone(body['result']['reason'])

    def test_get_statement(self):
        self._create()
        now = current_timestamp()
        body = self._call(METHOD_GET_STATEMENT, {'from': now - 60_000, 'to': now + 60_000})

        transactions = body['result']['transactions']
        self.assertEqual(len(transactions), 1)
        self.assertEqual(transactions[0]['id'], '6650a1f0c0ffee0001')
        self.assertEqual(transactions[0]['account'], {'order_id': '1001'})


class PaymentSecurityMiddlewareTests(TestCase):

    def _post(self, ip, **extra):
        return self.client.post(
            reverse('payme-callback'),
            data=json.dumps({'id': 1, 'method': METHOD_CHECK_TRANSACTION, 'params': {'id': 'x'}}),
            content_type='application/json',
            HTTP_AUTHORIZATION=basic_auth('Paycom', 'payme-test-key'),
            REMOTE_ADDR=ip,
            **extra
        )

    def test_foreign_ip_is_blocked(self):
        with override_settings(PAYMEUZ_SETTINGS={**settings.PAYMEUZ_SETTINGS, 'CHECK_IP': True}):
            resp = self._post('10.1.2.3')
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()['error']['code'], AUTH_FAILED)

    def test_payme_ip_passes(self):
        with override_settings(PAYMEUZ_SETTINGS={**settings.PAYMEUZ_SETTINGS, 'CHECK_IP': True}):
            resp = self._post('185.178.208.10')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['error']['code'], TRANSACTION_NOT_FOUND)

    @override_settings(REST_FRAMEWORK={**settings.REST_FRAMEWORK, 'NUM_PROXIES': 1})
    def test_forged_forwarded_for_is_ignored(self):
        with override_settings(PAYMEUZ_SETTINGS={**settings.PAYMEUZ_SETTINGS, 'CHECK_IP': True}):
            forged = self._post('127.0.0.1', HTTP_X_FORWARDED_FOR='185.178.208.10, 10.1.2.3')
            proxied = self._post('127.0.0.1', HTTP_X_FORWARDED_FOR='10.1.2.3, 185.178.208.10')

        self.assertEqual(forged.status_code, 403)
        self.assertEqual(proxied.status_code, 200)


class PaymeServiceTests(TestCase):

    def test_check_auth(self):
        service = PaymeService({'MERCHANT_ID': 'm-1', 'KEY': 'k1', 'ADDITIONAL_KEYS': ['k2']})

        self.assertTrue(service.check_auth(basic_auth('Paycom', 'k1')))
        self.assertTrue(service.check_auth(basic_auth('m-1', 'k2')))
        self.assertFalse(service.check_auth(basic_auth('Paycom', 'k3')))
        self.assertFalse(service.check_auth(basic_auth('someone', 'k1')))
        self.assertFalse(service.check_auth('Bearer k1'))
        self.assertFalse(service.check_auth('Basic !!!'))
        self.assertFalse(service.check_auth(None))

    def test_create_checkout_url(self):
        order = OrderModel.objects.create(order_number='AL-2001', total=15000, payme_order_id='2001')
        service = PaymeService({'MERCHANT_ID': 'm-1', 'KEY': 'k1', 'TEST_ENV': True})

        url = service.create_checkout_url(order)

        self.assertTrue(url.startswith(TEST_INITIALIZATION_URL))
        encoded = url.rsplit('/', 1)[1]
        self.assertEqual(base64.b64decode(encoded).decode(), 'm=m-1;ac.order_id=2001;a=1500000')


class PaymeWithClickTests(TestCase):
    """Orders that can be paid with either gateway"""

    def setUp(self):
        self.order = OrderModel.objects.create(
            order_number='AL-7001',
            total=80000,
            payme_order_id='7001',
            click_order_id='7002',
        )
        self.service = PaymeService()

    def _create(self, transaction_id='tx1'):
        return self.service.handle(METHOD_CREATE_TRANSACTION, {
            'id': transaction_id,
            'time': current_timestamp(),
            'amount': 8000000,
            'account': {'order_id': '7001'},
        })

    def _click_confirmed(self):
        return ClickTransaction.objects.create(
            click_trans_id=2700001,
            order=self.order,
            amount=80000,
            state=STATE_CONFIRMED,
            click_error=0,
            complete_time=current_timestamp(),
        )

    def test_perform_after_click_payment_cancels_transaction(self):
        self._create()
        approve_order(self.order.pk, click_trans_id=2700001)

        with self.assertRaises(PaymeError) as error:
            self.service.handle(METHOD_PERFORM_TRANSACTION, {'id': 'tx1'})
        self.assertEqual(error.exception.code, UNABLE_TO_PERFORM_OPERATION)

        payme_transaction = PaymeTransaction.objects.get(transaction_id='tx1')
        self.assertEqual(payme_transaction.state, CANCEL_CREATE_TRANSACTION)
        self.assertEqual(payme_transaction.reason, REASON_EXECUTION_FAILED)
        self.assertEqual(payme_transaction.perform_time, 0)

        # Payme follows up with a cancel: the Click payment must survive it
        cancelled = self.service.handle(METHOD_CANCEL_TRANSACTION, {'id': 'tx1', 'reason': REASON_UNKNOWN})
        self.assertEqual(cancelled['state'], CANCEL_CREATE_TRANSACTION)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 2700001)
        self.assertIsNone(self.order.payme_perform_time)
        self.assertFalse(PaymeTransaction.objects.filter(state=CLOSE_TRANSACTION).exists())

    def test_perform_refused_while_click_completion_is_queued(self):
        self._create()
        click_transaction = self._click_confirmed()

        with self.assertRaises(PaymeError) as error:
            self.service.handle(METHOD_PERFORM_TRANSACTION, {'id': 'tx1'})
        self.assertEqual(error.exception.code, UNABLE_TO_PERFORM_OPERATION)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)

        self.assertTrue(apply_click_completion(click_transaction.pk))
        self.order.refresh_from_db()
        click_transaction.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 2700001)
        self.assertFalse(click_transaction.needs_refund)

    def test_cancel_open_transaction_keeps_order_paid_through_click(self):
        self._create()
        click_transaction = self._click_confirmed()

        self.service.handle(METHOD_CANCEL_TRANSACTION, {'id': 'tx1', 'reason': REASON_TIMEOUT})

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)

        apply_click_completion(click_transaction.pk)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)

    def test_create_refused_while_click_completion_is_queued(self):
        self._click_confirmed()

        with self.assertRaises(PaymeError) as error:
            self._create()
        self.assertEqual(error.exception.code, UNABLE_TO_PERFORM_OPERATION)
        self.assertFalse(PaymeTransaction.objects.exists())

    def test_cancel_after_perform_does_not_reject_other_payment(self):
        self._create()
        self.service.handle(METHOD_PERFORM_TRANSACTION, {'id': 'tx1'})
        # order was refunded by hand and paid again through Click
        OrderModel.objects.filter(pk=self.order.pk).update(payme_transaction_id=None, payme_perform_time=None,
                                                           click_trans_id=2700001)

        self.service.handle(METHOD_CANCEL_TRANSACTION, {'id': 'tx1', 'reason': REASON_REFUND})

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
