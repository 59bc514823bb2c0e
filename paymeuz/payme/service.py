import base64
import binascii
import hmac
import logging

from django.conf import settings
from django.db import transaction

from clickuz.models import ClickTransaction
from config.helpers import current_timestamp, to_int
from paymeuz.keywords import *
from paymeuz.models import PaymeTransaction
from shop.models import OrderModel
from shop.selectors import get_order_by_payme_id
from shop.services import approve_order, reject_order, update_order_fields, on_order_approved, on_order_rejected

logger = logging.getLogger(__name__)


class PaymeError(Exception):
    """A Payme protocol error: returned to Payme as the JSON-RPC ``error`` object."""

    def __init__(self, code, message, data=None):
        super().__init__(message.get('en') if isinstance(message, dict) else message)
        self.code = code
        self.message = message
        self.data = data


class PaymeService:
    """Payme Merchant API Service"""

    def __init__(self, config=None):
        self.config = config if config is not None else settings.PAYMEUZ_SETTINGS

    @property
    def timeout(self):
        return self.config.get('TRANSACTION_TIMEOUT', 43_200_000)

    def get_keys(self):
        keys = [self.config.get('KEY'), self.config.get('TEST_KEY')]
        keys += list(self.config.get('ADDITIONAL_KEYS') or [])
        return [key for key in keys if key]

    def get_logins(self):
        logins = [PAYCOM_LOGIN]
        if self.config.get('MERCHANT_ID'):
            logins.append(self.config['MERCHANT_ID'])
        return logins

    def is_configured(self):
        return bool(self.get_keys())

    def check_auth(self, auth_header):
        """
        Verify Payme authentication

        Payme sends: Authorization: Basic base64(Paycom:KEY). The merchant id
        is accepted as the login as well.
        """
        auth_header = (auth_header or '').strip()
        if not auth_header.startswith('Basic '):
            return False

        try:
            decoded = base64.b64decode(auth_header.split(' ', 1)[1].strip()).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return False

        login, _, password = decoded.partition(':')
        if login not in self.get_logins():
            return False

        return any(hmac.compare_digest(password, key) for key in self.get_keys())

    def create_checkout_url(self, order, return_url=None):
        """
        Create Payme checkout URL

        Returns: URL the client should be redirected to
        """
        merchant_id = self.config.get('MERCHANT_ID')
        if not merchant_id:
            raise ValueError('Payme merchant id is not configured')

        params = f"m={merchant_id};ac.order_id={order.payme_order_id};a={order.get_payme_amount()}"
        if return_url:
            params += f";c={return_url};ct=2000"

        encode_params = base64.b64encode(params.encode("utf-8")).decode("utf-8")
        base_url = TEST_INITIALIZATION_URL if self.config.get('TEST_ENV') else INITIALIZATION_URL
        return f"{base_url}/{encode_params}"

    def handle(self, method, params):
        handlers = {
            METHOD_CHECK_PERFORM_TRANSACTION: self.check_perform_transaction,
            METHOD_CREATE_TRANSACTION: self.create_transaction,
            METHOD_PERFORM_TRANSACTION: self.perform_transaction,
            METHOD_CHECK_TRANSACTION: self.check_transaction,
            METHOD_CANCEL_TRANSACTION: self.cancel_transaction,
            METHOD_GET_STATEMENT: self.get_statement,
        }

        handler = handlers.get(method)
        if handler is None:
            raise PaymeError(METHOD_NOT_FOUND, METHOD_NOT_FOUND_MESSAGE, data=method)

        return handler(params or {})

    # Lookups

    def _get_order(self, account, for_update=False):
        order_id = (account or {}).get('order_id')
        order = get_order_by_payme_id(order_id, for_update=for_update)
        if order is None:
            raise PaymeError(ORDER_NOT_FOUND, ORDER_NOT_FOUND_MESSAGE, data='order_id')
        return order

    def _get_transaction(self, transaction_id, for_update=False):
        qs = PaymeTransaction.objects.select_related('order')
        if for_update:
            qs = qs.select_for_update()
        payme_transaction = qs.filter(transaction_id=transaction_id).first() if transaction_id else None
        if payme_transaction is None:
            raise PaymeError(TRANSACTION_NOT_FOUND, TRANSACTION_NOT_FOUND_MESSAGE)
        return payme_transaction

    def _validate_order(self, order, amount):
        if to_int(amount) != order.get_payme_amount():
            raise PaymeError(INVALID_AMOUNT, INVALID_AMOUNT_MESSAGE, data='amount')

        if order.status == OrderModel.Status.APPROVED and order.payme_transaction_id:
            raise PaymeError(ORDER_ALREADY_PAID, ORDER_ALREADY_PAID_MESSAGE, data='order_id')

        if order.status != OrderModel.Status.PENDING:
            raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE, data='order_id')

        # Click has taken the money, the order write is still queued
        if ClickTransaction.has_unapplied_confirmation(order.pk):
            raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE, data='order_id')

    def _is_expired(self, payme_transaction):
        return current_timestamp() - payme_transaction.create_time > self.timeout

    def _approve(self, payme_transaction, order):
        if ClickTransaction.has_unapplied_confirmation(order.pk):
            return False

        perform_time = current_timestamp()
        approved = approve_order(
            order.pk,
            payme_transaction_id=payme_transaction.transaction_id,
            payme_state=CLOSE_TRANSACTION,
            payme_perform_time=perform_time,
        )
        if not approved:
            return False

        payme_transaction.state = CLOSE_TRANSACTION
        payme_transaction.perform_time = perform_time
        payme_transaction.save(update_fields=['state', 'perform_time', 'updated_at'])
        return True

    def _cancel(self, payme_transaction, reason, reject=True):
        """
        Cancel the ledger row and reject the order it paid for.

        With ``reject=False`` the order status is left alone: used when the
        order was settled by another payment while this one was open.
        """
        was_performed = payme_transaction.state == CLOSE_TRANSACTION
        new_state = CANCEL_CLOSE_TRANSACTION if was_performed else CANCEL_CREATE_TRANSACTION
        cancel_time = current_timestamp()

        payme_transaction.state = new_state
        payme_transaction.reason = reason
        payme_transaction.cancel_time = cancel_time
        payme_transaction.save(update_fields=['state', 'reason', 'cancel_time', 'updated_at'])

        fields = dict(payme_state=new_state, payme_cancel_time=cancel_time, payme_cancel_reason=reason)

        if was_performed:
            # only an order this transaction actually paid for
            from_statuses = (OrderModel.Status.PENDING, OrderModel.Status.APPROVED)
            match = {'payme_transaction_id': payme_transaction.transaction_id,
                     'payme_perform_time': payme_transaction.perform_time}
        else:
            from_statuses = (OrderModel.Status.PENDING,)
            match = None
            # a pending order may already be paid through Click
            if ClickTransaction.has_unapplied_confirmation(payme_transaction.order_id):
                reject = False

        if reject and reject_order(payme_transaction.order_id, from_statuses=from_statuses, match=match, **fields):
            on_order_rejected(payme_transaction.order_id, 'payme')
        else:
            update_order_fields(payme_transaction.order_id, **fields)

        logger.info(f"Payme transaction {payme_transaction.transaction_id} cancelled, "
                    f"state {new_state}, reason {reason}")

    # Methods

    def check_perform_transaction(self, params):
        """
        CheckPerformTransaction method

        Payme asks: Can this payment be performed?
        """
        order = self._get_order(params.get('account'))
        self._validate_order(order, params.get('amount'))
        return {'allow': True}

    def create_transaction(self, params):
        """
        CreateTransaction method

        Repeated calls with the same id return the stored transaction.
        """
        transaction_id = params.get('id')
        time = to_int(params.get('time'))
        if not transaction_id or time is None:
            raise PaymeError(INVALID_REQUEST, INVALID_REQUEST_MESSAGE, data='id')

        expired = False
        with transaction.atomic():
            existing = PaymeTransaction.objects.select_for_update().filter(transaction_id=transaction_id).first()

            if existing is not None:
                if existing.state != CREATE_TRANSACTION:
                    raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE)

                if self._is_expired(existing):
                    self._cancel(existing, REASON_TIMEOUT)
                    expired = True
                else:
                    return {
                        'create_time': existing.create_time,
                        'transaction': str(existing.pk),
                        'state': existing.state,
                    }

            else:
                order = self._get_order(params.get('account'), for_update=True)
                self._validate_order(order, params.get('amount'))

                if PaymeTransaction.objects.filter(order=order, state=CREATE_TRANSACTION).exists():
                    raise PaymeError(ORDER_BUSY, ORDER_BUSY_MESSAGE, data='order_id')

                if current_timestamp() - time > self.timeout:
                    raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE)

                create_time = current_timestamp()
                payme_transaction = PaymeTransaction.objects.create(
                    transaction_id=transaction_id,
                    order=order,
                    amount=to_int(params.get('amount')),
                    time=time,
                    state=CREATE_TRANSACTION,
                    create_time=create_time,
                )
                update_order_fields(
                    order.pk,
                    payme_transaction_id=transaction_id,
                    payme_state=CREATE_TRANSACTION,
                    payme_create_time=create_time,
                )

                logger.info(f"Payme transaction {transaction_id} created for order #{order.order_number}")

                return {
                    'create_time': create_time,
                    'transaction': str(payme_transaction.pk),
                    'state': CREATE_TRANSACTION,
                }

        if expired:
            raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE)

    def perform_transaction(self, params):
        """
        PerformTransaction method

        Approves the order. The side effects of approval run only for the
        delivery that actually moved the order out of ``pending``. If the
        order was settled through Click meanwhile, the transaction is
        cancelled instead so Payme does not take the money.
        """
        expired = settled_elsewhere = False
        with transaction.atomic():
            payme_transaction = self._get_transaction(params.get('id'), for_update=True)
            order = OrderModel.objects.select_for_update().get(pk=payme_transaction.order_id)

            if payme_transaction.state == CLOSE_TRANSACTION:
                return {
                    'transaction': str(payme_transaction.pk),
                    'perform_time': payme_transaction.perform_time,
                    'state': payme_transaction.state,
                }

            if payme_transaction.state != CREATE_TRANSACTION:
                raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE)

            if self._is_expired(payme_transaction):
                self._cancel(payme_transaction, REASON_TIMEOUT)
                expired = True
            elif not self._approve(payme_transaction, order):
                logger.warning(f"Order #{order.order_number} is no longer payable, cancelling Payme transaction "
                               f"{payme_transaction.transaction_id}")
                self._cancel(payme_transaction, REASON_EXECUTION_FAILED, reject=False)
                settled_elsewhere = True
            else:
                on_order_approved(order.pk, 'payme')
                logger.info(f"Payme transaction {payme_transaction.transaction_id} performed")

                return {
                    'transaction': str(payme_transaction.pk),
                    'perform_time': payme_transaction.perform_time,
                    'state': CLOSE_TRANSACTION,
                }

        if expired or settled_elsewhere:
            raise PaymeError(UNABLE_TO_PERFORM_OPERATION, UNABLE_TO_PERFORM_OPERATION_MESSAGE)

    def cancel_transaction(self, params):
        """
        CancelTransaction method

        Cancel transaction
        """
        reason = to_int(params.get('reason'), REASON_UNKNOWN)

        with transaction.atomic():
            payme_transaction = self._get_transaction(params.get('id'), for_update=True)

            if payme_transaction.state in (CANCEL_CREATE_TRANSACTION, CANCEL_CLOSE_TRANSACTION):
                return {
                    'transaction': str(payme_transaction.pk),
                    'cancel_time': payme_transaction.cancel_time,
                    'state': payme_transaction.state,
                }

            if payme_transaction.state == CLOSE_TRANSACTION and payme_transaction.order.status in (
                    OrderModel.Status.SHIPPED, OrderModel.Status.DELIVERED):
                raise PaymeError(UNABLE_TO_CANCEL, UNABLE_TO_CANCEL_MESSAGE)

            self._cancel(payme_transaction, reason)

            return {
                'transaction': str(payme_transaction.pk),
                'cancel_time': payme_transaction.cancel_time,
                'state': payme_transaction.state,
            }

    def check_transaction(self, params):
        """
        CheckTransaction method

        Check transaction status
        """
        payme_transaction = self._get_transaction(params.get('id'))
        return payme_transaction.as_check_result()

    def get_statement(self, params):
        time_from = to_int(params.get('from'))
        time_to = to_int(params.get('to'))
        if time_from is None or time_to is None:
            raise PaymeError(INVALID_REQUEST, INVALID_REQUEST_MESSAGE, data='from')

        transactions = PaymeTransaction.objects.select_related('order').filter(
            time__gte=time_from,
            time__lte=time_to,
        ).order_by('time')

        return {'transactions': [item.as_statement_item() for item in transactions]}
