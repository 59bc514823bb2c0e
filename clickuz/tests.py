import json
from io import StringIO
from unittest import mock

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from account.models import UserModel
from config.helpers import current_timestamp
from paymeuz.keywords import (
    CLOSE_TRANSACTION, CREATE_TRANSACTION, METHOD_CHECK_PERFORM_TRANSACTION, METHOD_CREATE_TRANSACTION,
    METHOD_PERFORM_TRANSACTION, UNABLE_TO_PERFORM_OPERATION,
)
from paymeuz.models import PaymeTransaction
from paymeuz.payme.service import PaymeService, PaymeError
from shop.models import OrderModel
from shop.services import approve_order
from .keywords import *
from .models import ClickTransaction
from .signature import build_sign_string, make_sign, verify_sign
from .tasks import retry_pending_completions

SECRET = 'click-test-secret'


def signed(params):
    params = {key: str(value) for key, value in params.items()}
    params['sign_string'] = make_sign(params, SECRET)
    return params


class ClickSignatureTests(TestCase):

    def test_prepare_sign_string_skips_prepare_id(self):
        params = {
            'click_trans_id': '100', 'service_id': '31234', 'merchant_trans_id': '1001',
            'merchant_prepare_id': '7', 'amount': '80000', 'action': '0', 'sign_time': '2024-05-01 10:00:00',
        }
        self.assertEqual(build_sign_string(params, 's'), '10031234s1001800000' + '2024-05-01 10:00:00')

    def test_complete_sign_string_includes_prepare_id(self):
        params = {
            'click_trans_id': '100', 'service_id': '31234', 'merchant_trans_id': '1001',
            'merchant_prepare_id': '7', 'amount': '80000', 'action': '1', 'sign_time': 't',
        }
        self.assertEqual(build_sign_string(params, 's'), '10031234s10017800001t')

    def test_verify_sign(self):
        params = signed({'click_trans_id': 1, 'service_id': 2, 'merchant_trans_id': 3, 'amount': 4,
                         'action': 0, 'sign_time': 't'})
        self.assertTrue(verify_sign(params, SECRET))
        self.assertFalse(verify_sign({**params, 'amount': '5'}, SECRET))
        self.assertFalse(verify_sign(params, ''))


class ClickCallbackTests(TestCase):
    def setUp(self):
        self.user = UserModel.objects.create(username='tg_9001', telegram_id=9001)
        self.order = OrderModel.objects.create(
            order_number='AL-1002',
            user=self.user,
            user_telegram_id=9001,
            total=80000,
            click_order_id='1002',
            payme_order_id='9002',
        )

    def _post(self, payload, url=None):
        return self.client.post(
            url or reverse('click-callback'),
            data=json.dumps(payload),
            content_type='application/json',
        )

    def _prepare_params(self, **overrides):
        params = {
            'click_trans_id': 2400001,
            'service_id': settings.CLICK_SETTINGS['SERVICE_ID'],
            'click_paydoc_id': 3300001,
            'merchant_trans_id': '1002',
            'amount': '80000',
            'action': ACTION_PREPARE,
            'error': 0,
            'error_note': 'Success',
            'sign_time': '2024-05-01 10:00:00',
        }
        params.update(overrides)
        return signed(params)

    def _complete_params(self, merchant_prepare_id, **overrides):
        params = {
            'click_trans_id': 2400001,
            'service_id': settings.CLICK_SETTINGS['SERVICE_ID'],
            'click_paydoc_id': 3300001,
            'merchant_trans_id': '1002',
            'merchant_prepare_id': merchant_prepare_id,
            'amount': '80000',
            'action': ACTION_COMPLETE,
            'error': 0,
            'error_note': 'Success',
            'sign_time': '2024-05-01 10:00:05',
        }
        params.update(overrides)
        return signed(params)

    def _prepare(self, **overrides):
        return self._post({'method': METHOD_PREPARE, **self._prepare_params(**overrides)}).json()

    def _complete(self, merchant_prepare_id, **overrides):
        payload = {'method': METHOD_COMPLETE, **self._complete_params(merchant_prepare_id, **overrides)}
        with self.captureOnCommitCallbacks(execute=True):
            return self._post(payload).json()

    def test_prepare_success(self):
        body = self._prepare()

        click_transaction = ClickTransaction.objects.get(click_trans_id=2400001)
        self.assertEqual(body['error'], SUCCESS)
        self.assertEqual(body['merchant_prepare_id'], click_transaction.pk)
        self.assertEqual(body['merchant_trans_id'], '1002')
        self.assertEqual(click_transaction.state, STATE_PREPARED)

    def test_prepare_redelivery_returns_same_id(self):
        first = self._prepare()
        second = self._prepare()
        self.assertEqual(first['merchant_prepare_id'], second['merchant_prepare_id'])
        self.assertEqual(ClickTransaction.objects.count(), 1)

    def test_prepare_accepts_decimal_amount(self):
        self.assertEqual(self._prepare(amount='80000.00')['error'], SUCCESS)

    def test_prepare_amount_mismatch(self):
        body = self._prepare(amount='70000')
        self.assertEqual(body['error'], INCORRECT_AMOUNT)
        self.assertIn('80000', body['error_note'])
        self.assertIn('70000', body['error_note'])
        self.assertEqual(body['merchant_prepare_id'], 0)

    def test_prepare_unknown_order(self):
        self.assertEqual(self._prepare(merchant_trans_id='404')['error'], ORDER_NOT_FOUND)

    def test_prepare_wrong_service_id(self):
        body = self._prepare(service_id='1')
        self.assertEqual(body['error'], ORDER_NOT_FOUND)
        self.assertEqual(body['error_note'], INVALID_SERVICE_ID_NOTE)

    def test_prepare_wrong_action(self):
        self.assertEqual(self._prepare(action='1')['error'], ACTION_NOT_FOUND)

    def test_prepare_bad_signature(self):
        payload = {'method': METHOD_PREPARE, **self._prepare_params(), 'sign_string': '0' * 32}
        self.assertEqual(self._post(payload).json()['error'], SIGN_CHECK_FAILED)

    def test_prepare_on_paid_order(self):
        OrderModel.objects.filter(pk=self.order.pk).update(status=OrderModel.Status.APPROVED, click_trans_id=1)
        self.assertEqual(self._prepare()['error'], ALREADY_PAID)

    def test_prepare_on_rejected_order(self):
        OrderModel.objects.filter(pk=self.order.pk).update(status=OrderModel.Status.REJECTED)
        self.assertEqual(self._prepare()['error'], TRANSACTION_CANCELLED)

    def test_unknown_method(self):
        body = self._post({'method': 'refund', **self._prepare_params()}).json()
        self.assertEqual(body['error'], ACTION_NOT_FOUND)
        self.assertEqual(body['error_note'], ACTION_NOT_FOUND_NOTE)

    def test_missing_fields(self):
        body = self._post({'method': METHOD_PREPARE, 'click_trans_id': '1'}).json()
        self.assertEqual(body['error'], ERROR_IN_REQUEST)

    def test_route_based_prepare_with_form_body(self):
        resp = self.client.post(reverse('click-prepare'), data=self._prepare_params())
        self.assertEqual(resp.json()['error'], SUCCESS)

    def test_complete_without_prepare(self):
        self.assertEqual(self._complete(merchant_prepare_id=77)['error'], TRANSACTION_NOT_FOUND)

    def test_complete_unknown_order(self):
        self.assertEqual(self._complete(merchant_prepare_id=1, merchant_trans_id='404')['error'], ORDER_NOT_FOUND)

    def test_prepare_then_complete_approves_order(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        params = self._complete_params(prepare_id)
        params.pop('error')
        params['sign_string'] = make_sign(params, SECRET)

        with self.captureOnCommitCallbacks(execute=True):
            body = self._post({'method': METHOD_COMPLETE, **params}).json()

        self.assertEqual(body['error'], SUCCESS)
        self.assertEqual(body['merchant_confirm_id'], prepare_id)

        self.order.refresh_from_db()
        self.user.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 2400001)
        self.assertEqual(self.order.click_paydoc_id, 3300001)
        self.assertEqual(self.user.bonus_points, 2400)
        self.assertTrue(ClickTransaction.objects.get(pk=prepare_id).applied)

    def test_complete_redelivery_does_not_repeat_side_effects(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        first = self._complete(prepare_id)

        with mock.patch('clickuz.services.on_order_approved') as on_order_approved:
            second = self._complete(prepare_id)

        self.assertEqual(first, second)
        on_order_approved.assert_not_called()
        self.user.refresh_from_db()
        self.assertEqual(self.user.bonus_points, 2400)

    def test_complete_with_prepare_id_mismatch(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        self.assertEqual(self._complete(prepare_id + 1)['error'], TRANSACTION_NOT_FOUND)

    def test_complete_amount_mismatch(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        self.assertEqual(self._complete(prepare_id, amount='1000')['error'], INCORRECT_AMOUNT)

    def test_complete_with_click_error_rejects_order(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        body = self._complete(prepare_id, error=-5017, error_note='Insufficient funds')

        self.assertEqual(body['error'], TRANSACTION_CANCELLED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.REJECTED)
        self.assertEqual(self.order.click_error, -5017)
        self.assertEqual(ClickTransaction.objects.get(pk=prepare_id).state, STATE_CANCELLED)

    def test_complete_on_order_paid_by_payme(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        OrderModel.objects.filter(pk=self.order.pk).update(status=OrderModel.Status.APPROVED,
                                                           payme_transaction_id='p-1')
        self.assertEqual(self._complete(prepare_id)['error'], ALREADY_PAID)

    def test_complete_answers_before_order_write(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        payload = {'method': METHOD_COMPLETE, **self._complete_params(prepare_id)}

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            body = self._post(payload).json()

        self.assertEqual(body['error'], SUCCESS)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)
        self.assertEqual(len(callbacks), 1)

    def _payme_create(self, transaction_id='p-1'):
        return PaymeService().handle(METHOD_CREATE_TRANSACTION, {
            'id': transaction_id,
            'time': current_timestamp(),
            'amount': 8000000,
            'account': {'order_id': '9002'},
        })

    def test_prepare_refused_while_payme_transaction_is_open(self):
        self._payme_create()

        body = self._prepare()
        self.assertEqual(body['error'], ALREADY_PAID)
        self.assertEqual(body['error_note'], PAYME_IN_PROGRESS_NOTE)
        self.assertFalse(ClickTransaction.objects.exists())

    def test_expired_payme_transaction_does_not_block_click(self):
        PaymeTransaction.objects.create(
            transaction_id='p-old',
            order=self.order,
            amount=8000000,
            time=1,
            state=CREATE_TRANSACTION,
            create_time=current_timestamp() - 43_200_001,
        )
        self.assertEqual(self._prepare()['error'], SUCCESS)

    def test_complete_refused_when_payme_opened_after_prepare(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        self._payme_create()

        self.assertEqual(self._complete(prepare_id)['error'], ALREADY_PAID)
        self.assertEqual(ClickTransaction.objects.get(pk=prepare_id).state, STATE_PREPARED)

        performed = PaymeService().handle(METHOD_PERFORM_TRANSACTION, {'id': 'p-1'})
        self.assertEqual(performed['state'], CLOSE_TRANSACTION)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.payme_transaction_id, 'p-1')
        self.assertIsNone(self.order.click_trans_id)

    def test_failed_click_payment_keeps_order_open_for_payme(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        self._payme_create()

        body = self._complete(prepare_id, error=-5017, error_note='Insufficient funds')
        self.assertEqual(body['error'], TRANSACTION_CANCELLED)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)
        self.assertTrue(ClickTransaction.objects.get(pk=prepare_id).applied)

        performed = PaymeService().handle(METHOD_PERFORM_TRANSACTION, {'id': 'p-1'})
        self.assertEqual(performed['state'], CLOSE_TRANSACTION)

    def test_payme_refused_after_click_complete(self):
        prepare_id = self._prepare()['merchant_prepare_id']
        payload = {'method': METHOD_COMPLETE, **self._complete_params(prepare_id)}

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.assertEqual(self._post(payload).json()['error'], SUCCESS)

        # the order write is still queued
        with self.assertRaises(PaymeError) as error:
            PaymeService().handle(METHOD_CHECK_PERFORM_TRANSACTION, {
                'amount': 8000000,
                'account': {'order_id': '9002'},
            })
        self.assertEqual(error.exception.code, UNABLE_TO_PERFORM_OPERATION)

        for callback in callbacks:
            callback()

        with self.assertRaises(PaymeError) as error:
            self._payme_create()
        self.assertEqual(error.exception.code, UNABLE_TO_PERFORM_OPERATION)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 2400001)
        self.assertFalse(PaymeTransaction.objects.exists())


class ClickCompletionRetryTests(TestCase):
    def setUp(self):
        self.order = OrderModel.objects.create(order_number='AL-1003', total=50000, click_order_id='1003')
        self.click_transaction = ClickTransaction.objects.create(
            click_trans_id=2500001,
            click_paydoc_id=3500001,
            order=self.order,
            amount=50000,
            state=STATE_CONFIRMED,
            click_error=0,
            complete_time=1714557600000,
        )

    def test_management_command_applies_pending_rows(self):
        out = StringIO()
        call_command('retry_click_completions', stdout=out)

        self.order.refresh_from_db()
        self.click_transaction.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 2500001)
        self.assertTrue(self.click_transaction.applied)
        self.assertEqual(self.click_transaction.attempts, 1)
        self.assertIn('Successfully applied 1', out.getvalue())

    def test_management_command_dry_run(self):
        out = StringIO()
        call_command('retry_click_completions', '--dry-run', stdout=out)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.PENDING)
        self.assertIn('2500001', out.getvalue())

    def test_beat_task_reenqueues_pending_rows(self):
        with self.settings(CLICK_SETTINGS={**settings.CLICK_SETTINGS, 'RETRY_AFTER_SECONDS': 0}):
            self.assertEqual(retry_pending_completions(), 1)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(retry_pending_completions(), 0)

    def test_completion_on_order_settled_elsewhere_needs_refund(self):
        approve_order(self.order.pk, payme_transaction_id='p-9')

        call_command('retry_click_completions', stdout=StringIO())

        self.order.refresh_from_db()
        self.click_transaction.refresh_from_db()
        self.assertEqual(self.order.payme_transaction_id, 'p-9')
        self.assertIsNone(self.order.click_trans_id)
        self.assertTrue(self.click_transaction.applied)
        self.assertTrue(self.click_transaction.needs_refund)
