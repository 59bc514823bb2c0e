from unittest import mock

import requests
from django.conf import settings
from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.urls import reverse

from account.models import UserModel
from config.models import ConfigModel
from config.validators import PhoneValidator, format_phone, normalize_phone
from utils.telegram import TelegramNotification, build_order_status_message, send_order_status
from .models import OrderModel
from .services import approve_order, reject_order, calculate_purchase_bonus, award_purchase_bonus
from .tasks import notify_order_status_task


class OrderServicesTests(TestCase):
    def setUp(self):
        self.user = UserModel.objects.create(username='tg_7001', telegram_id=7001, bonus_points=50)
        self.order = OrderModel.objects.create(order_number='AL-3001', user=self.user, total=125000)

    def test_approve_order_only_once(self):
        self.assertTrue(approve_order(self.order.pk, click_trans_id=111))
        self.assertFalse(approve_order(self.order.pk, click_trans_id=222))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.APPROVED)
        self.assertEqual(self.order.click_trans_id, 111)

    def test_reject_order_respects_from_statuses(self):
        approve_order(self.order.pk)
        self.assertFalse(reject_order(self.order.pk))
        self.assertTrue(reject_order(self.order.pk, from_statuses=(OrderModel.Status.APPROVED,)))

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderModel.Status.REJECTED)

    def test_calculate_purchase_bonus_uses_default_percent(self):
        self.assertEqual(calculate_purchase_bonus(125000), 3750)
        self.assertEqual(calculate_purchase_bonus(99, percent=3), 3)

    def test_calculate_purchase_bonus_uses_config_row(self):
        ConfigModel.objects.create(purchase_bonus_percent=10)
        self.assertEqual(calculate_purchase_bonus(125000), 12500)

    def test_award_purchase_bonus_runs_once(self):
        approve_order(self.order.pk)

        self.assertEqual(award_purchase_bonus(self.order.pk), 3750)
        self.assertEqual(award_purchase_bonus(self.order.pk), 0)

        self.user.refresh_from_db()
        self.assertEqual(self.user.bonus_points, 3800)

    def test_award_purchase_bonus_skips_pending_order(self):
        self.assertEqual(award_purchase_bonus(self.order.pk), 0)
        self.order.refresh_from_db()
        self.assertFalse(self.order.bonus_awarded)

    def test_award_purchase_bonus_without_user(self):
        order = OrderModel.objects.create(order_number='AL-3002', total=10000, status=OrderModel.Status.APPROVED)
        self.assertEqual(award_purchase_bonus(order.pk), 0)


@override_settings(TELEGRAM_BOT_TOKEN='123:abc')
class TelegramNotificationTests(TestCase):
    def setUp(self):
        self.order = OrderModel.objects.create(
            order_number='AL-4001',
            user_telegram_id=8001,
            total=80000,
            status=OrderModel.Status.APPROVED,
        )

    def test_chat_id_validation(self):
        self.assertTrue(TelegramNotification.is_valid_chat_id(8001))
        self.assertTrue(TelegramNotification.is_valid_chat_id('-100200'))
        self.assertFalse(TelegramNotification.is_valid_chat_id('demo-42'))
        self.assertFalse(TelegramNotification.is_valid_chat_id('abc'))
        self.assertFalse(TelegramNotification.is_valid_chat_id(None))

    def test_approved_message(self):
        message = build_order_status_message(self.order, 'click')
        self.assertIn('#AL-4001', message)
        self.assertIn('Click', message)

    def test_pending_order_has_no_message(self):
        self.order.status = OrderModel.Status.PENDING
        self.assertIsNone(build_order_status_message(self.order))

    @mock.patch('utils.telegram.requests.post')
    def test_send_order_status(self, post):
        post.return_value = mock.Mock(ok=True)

        self.assertTrue(send_order_status(self.order, 'payme'))

        kwargs = post.call_args.kwargs
        self.assertIn('bot123:abc/sendMessage', kwargs['url'])
        self.assertEqual(kwargs['json']['chat_id'], 8001)
        self.assertEqual(kwargs['json']['parse_mode'], 'HTML')

    @mock.patch('utils.telegram.requests.post', side_effect=requests.ConnectionError('down'))
    def test_send_failure_is_not_raised(self, post):
        self.assertFalse(send_order_status(self.order, 'payme'))

    @mock.patch('utils.telegram.requests.post')
    def test_order_without_chat_is_skipped(self, post):
        self.order.user_telegram_id = None
        self.order.save()

        self.assertFalse(notify_order_status_task(self.order.pk, 'payme'))
        post.assert_not_called()

    @override_settings(TELEGRAM_BOT_TOKEN='')
    @mock.patch('utils.telegram.requests.post')
    def test_missing_token(self, post):
        self.assertFalse(send_order_status(self.order))
        post.assert_not_called()


class CheckoutLinkTests(TestCase):
    def setUp(self):
        self.order = OrderModel.objects.create(
            order_number='AL-5001',
            total=45000,
            payme_order_id='5001',
            click_order_id='5001',
        )

    def _get(self, order_number, **params):
        return self.client.get(reverse('order-checkout-link', args=[order_number]), data=params)

    def test_payme_link(self):
        body = self._get('AL-5001', gateway='payme').json()
        self.assertEqual(body['status'], 'success')
        self.assertEqual(body['data']['amount'], 4500000)
        self.assertTrue(body['data']['url'].startswith('https://checkout'))

    def test_click_link(self):
        body = self._get('AL-5001', gateway='click', return_url='https://ailem.uz/orders').json()
        self.assertEqual(body['status'], 'success')
        self.assertEqual(body['data']['amount'], 45000)
        self.assertIn('transaction_param=5001', body['data']['url'])
        self.assertIn('service_id=31234', body['data']['url'])

    def test_unknown_gateway(self):
        body = self._get('AL-5001', gateway='uzcard').json()
        self.assertEqual(body['status'], 'fail')

    def test_paid_order(self):
        OrderModel.objects.filter(pk=self.order.pk).update(status=OrderModel.Status.APPROVED)
        body = self._get('AL-5001', gateway='payme').json()
        self.assertEqual(body['status'], 'fail')

    def test_payme_link_without_merchant_id(self):
        with override_settings(PAYMEUZ_SETTINGS={**settings.PAYMEUZ_SETTINGS, 'MERCHANT_ID': ''}):
            resp = self._get('AL-5001', gateway='payme')

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()['status'], 'fail')


class PhoneTests(TestCase):
    def test_normalize_phone(self):
        self.assertEqual(normalize_phone('+998 90 123 45 67'), '998901234567')
        self.assertEqual(normalize_phone('0901234567'), '998901234567')
        self.assertEqual(normalize_phone('901234567'), '998901234567')
        with self.assertRaises(ValidationError):
            normalize_phone('12345')

    def test_format_phone(self):
        self.assertEqual(format_phone('998901234567'), '+998 90 123 45 67')
        self.assertEqual(format_phone('n/a'), 'n/a')

    def test_validator_rejects_foreign_number(self):
        PhoneValidator()('998901234567')
        with self.assertRaises(ValidationError):
            PhoneValidator()('12025550123')
