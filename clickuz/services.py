import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from urllib.parse import urlencode

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from clickuz.keywords import *
from clickuz.models import ClickTransaction
from clickuz.signature import verify_sign
from config.helpers import current_timestamp, to_int
from paymeuz.models import PaymeTransaction
from shop.models import OrderModel
from shop.selectors import get_order_by_click_id
from shop.services import approve_order, reject_order, on_order_approved, on_order_rejected

logger = logging.getLogger(__name__)


class ClickError(Exception):
    def __init__(self, code, note):
        super().__init__(note)
        self.code = code
        self.note = note


class ClickService:
    """Click Shop API (prepare / complete)"""

    def __init__(self, config=None):
        self.config = config if config is not None else settings.CLICK_SETTINGS

    def create_payment_url(self, order, return_url=None):
        params = {
            'service_id': self.config.get('SERVICE_ID'),
            'merchant_id': self.config.get('MERCHANT_ID'),
            'amount': order.get_click_amount(),
            'transaction_param': order.click_order_id,
        }
        if self.config.get('MERCHANT_USER_ID'):
            params['merchant_user_id'] = self.config['MERCHANT_USER_ID']
        if return_url:
            params['return_url'] = return_url

        return f"{PAYMENT_URL}?{urlencode(params)}"

    # Checks

    def _check_request(self, params, action):
        if self.config.get('CHECK_SIGN') and not verify_sign(params, self.config.get('SECRET_KEY')):
            raise ClickError(SIGN_CHECK_FAILED, SIGN_CHECK_FAILED_NOTE)

        if str(params.get('service_id', '')) != str(self.config.get('SERVICE_ID')):
            raise ClickError(ORDER_NOT_FOUND, INVALID_SERVICE_ID_NOTE)

        if str(params.get('action', '')) != action:
            raise ClickError(ACTION_NOT_FOUND, ACTION_NOT_FOUND_NOTE)

        if to_int(params.get('click_trans_id')) is None:
            raise ClickError(ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)

    def _get_order(self, params, for_update=False):
        order_id = params.get('merchant_trans_id')
        order = get_order_by_click_id(order_id, for_update=for_update)
        if order is None:
            raise ClickError(ORDER_NOT_FOUND, ORDER_NOT_FOUND_NOTE.format(order_id=order_id))
        return order

    def _check_amount(self, order, params):
        received = params.get('amount')
        try:
            amount = Decimal(str(received))
        except (InvalidOperation, ValueError):
            raise ClickError(ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)

        expected = order.get_click_amount()
        if amount != expected:
            raise ClickError(INCORRECT_AMOUNT, INCORRECT_AMOUNT_NOTE.format(expected=expected, received=received))
        return amount

    def _check_order_payable(self, order):
        if order.status == OrderModel.Status.REJECTED:
            raise ClickError(TRANSACTION_CANCELLED, TRANSACTION_CANCELLED_NOTE)

        if order.status != OrderModel.Status.PENDING:
            raise ClickError(ALREADY_PAID, ALREADY_PAID_NOTE)

        if is_payme_in_progress(order.pk):
            raise ClickError(ALREADY_PAID, PAYME_IN_PROGRESS_NOTE)

    # Actions

    def prepare(self, params):
        """
        Prepare: check that the order can be paid

        Returns the ledger row id as ``merchant_prepare_id``; repeated prepare
        calls for the same ``click_trans_id`` get the same id back.
        """
        self._check_request(params, ACTION_PREPARE)
        click_trans_id = to_int(params.get('click_trans_id'))

        with transaction.atomic():
            order = self._get_order(params, for_update=True)
            amount = self._check_amount(order, params)
            self._check_order_payable(order)

            click_transaction, created = ClickTransaction.objects.select_for_update().get_or_create(
                click_trans_id=click_trans_id,
                defaults={
                    'order': order,
                    'amount': amount,
                    'click_paydoc_id': to_int(params.get('click_paydoc_id')),
                    'sign_time': str(params.get('sign_time') or ''),
                }
            )

            if not created:
                if click_transaction.order_id != order.pk:
                    raise ClickError(ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)
                if click_transaction.state == STATE_CANCELLED:
                    raise ClickError(TRANSACTION_CANCELLED, TRANSACTION_CANCELLED_NOTE)

        logger.info(f"Click prepare ok: trans {click_trans_id}, order #{order.order_number}, "
                    f"prepare id {click_transaction.pk}")

        return {
            'click_trans_id': click_trans_id,
            'merchant_trans_id': params.get('merchant_trans_id'),
            'merchant_prepare_id': click_transaction.pk,
            'error': SUCCESS,
            'error_note': SUCCESS_NOTE,
        }

    def complete(self, params):
        """
        Complete: record the payment outcome and answer Click

        Only the ledger row is written here. The order itself is updated by
        ``apply_click_completion_task`` once this transaction commits, so the
        response never waits on the order write.
        """
        from clickuz.tasks import apply_click_completion_task

        self._check_request(params, ACTION_COMPLETE)
        click_trans_id = to_int(params.get('click_trans_id'))
        click_error = to_int(params.get('error'), 0)

        with transaction.atomic():
            order = self._get_order(params, for_update=True)

            click_transaction = ClickTransaction.objects.select_for_update().filter(
                click_trans_id=click_trans_id,
                order=order,
            ).first()
            if click_transaction is None:
                raise ClickError(TRANSACTION_NOT_FOUND, TRANSACTION_NOT_FOUND_NOTE)

            prepare_id = params.get('merchant_prepare_id')
            if prepare_id not in (None, '') and to_int(prepare_id) != click_transaction.pk:
                raise ClickError(TRANSACTION_NOT_FOUND, TRANSACTION_NOT_FOUND_NOTE)

            self._check_amount(order, params)

            if click_transaction.state == STATE_CONFIRMED:
                logger.info(f"Click complete re-delivered for trans {click_trans_id}")
                return self._complete_response(params, click_transaction)

            if click_transaction.state == STATE_CANCELLED:
                raise ClickError(TRANSACTION_CANCELLED, TRANSACTION_CANCELLED_NOTE)

            if click_error >= 0:
                self._check_order_payable(order)

            click_transaction.state = STATE_CONFIRMED if click_error >= 0 else STATE_CANCELLED
            click_transaction.click_error = click_error
            click_transaction.click_paydoc_id = to_int(params.get('click_paydoc_id'),
                                                       click_transaction.click_paydoc_id)
            click_transaction.complete_time = current_timestamp()
            click_transaction.save()

            transaction.on_commit(lambda: apply_click_completion_task.delay(click_transaction.pk))

        logger.info(f"Click complete accepted: trans {click_trans_id}, order #{order.order_number}, "
                    f"click error {click_error}")

        if click_transaction.state == STATE_CANCELLED:
            return self._complete_response(params, click_transaction, TRANSACTION_CANCELLED,
                                           TRANSACTION_CANCELLED_NOTE)

        return self._complete_response(params, click_transaction)

    @staticmethod
    def _complete_response(params, click_transaction, error=SUCCESS, error_note=SUCCESS_NOTE):
        return {
            'click_trans_id': click_transaction.click_trans_id,
            'merchant_trans_id': params.get('merchant_trans_id'),
            'merchant_confirm_id': click_transaction.pk,
            'error': error,
            'error_note': error_note,
        }


def is_payme_in_progress(order_id):
    payme_timeout = settings.PAYMEUZ_SETTINGS.get('TRANSACTION_TIMEOUT', 43_200_000)
    return PaymeTransaction.has_open_transaction(order_id, created_after=current_timestamp() - payme_timeout)


def apply_click_completion(click_transaction_id):
    """
    Move the order to match a completed Click transaction.

    Safe to run more than once: a row already ``applied`` is skipped, and the
    order transition is a conditional UPDATE.
    """
    with transaction.atomic():
        click_transaction = ClickTransaction.objects.select_for_update().get(pk=click_transaction_id)
        if click_transaction.applied or click_transaction.state == STATE_PREPARED:
            return False

        fields = dict(
            click_trans_id=click_transaction.click_trans_id,
            click_paydoc_id=click_transaction.click_paydoc_id,
            click_complete_time=click_transaction.complete_time,
            click_error=click_transaction.click_error,
        )

        if click_transaction.state == STATE_CONFIRMED:
            if approve_order(click_transaction.order_id, **fields):
                on_order_approved(click_transaction.order_id, 'click')
            else:
                logger.error(f"Order {click_transaction.order_id} was settled before Click trans "
                             f"{click_transaction.click_trans_id} was applied, refund required")
                click_transaction.needs_refund = True
        elif is_payme_in_progress(click_transaction.order_id):
            logger.info(f"Order {click_transaction.order_id} is being paid through Payme, not rejecting it for "
                        f"failed Click trans {click_transaction.click_trans_id}")
        elif reject_order(click_transaction.order_id, **fields):
            on_order_rejected(click_transaction.order_id, 'click')

        click_transaction.applied = True
        click_transaction.attempts = F('attempts') + 1
        click_transaction.last_error = ''
        click_transaction.save(update_fields=['applied', 'needs_refund', 'attempts', 'last_error', 'updated_at'])

    logger.info(f"Click trans {click_transaction.click_trans_id} applied to order {click_transaction.order_id}")
    return True


def record_completion_failure(click_transaction_id, error):
    ClickTransaction.objects.filter(pk=click_transaction_id).update(
        attempts=F('attempts') + 1,
        last_error=str(error)[:2000],
        updated_at=timezone.now(),
    )


def get_pending_completions(older_than_seconds=0, max_attempts=None):
    qs = ClickTransaction.objects.filter(
        applied=False,
        state__in=[STATE_CONFIRMED, STATE_CANCELLED],
        updated_at__lte=timezone.now() - timedelta(seconds=older_than_seconds),
    )
    if max_attempts:
        qs = qs.filter(attempts__lt=max_attempts)
    return qs.order_by('created_at')
