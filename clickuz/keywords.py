# Click Shop API error codes
SUCCESS = 0
SIGN_CHECK_FAILED = -1
INCORRECT_AMOUNT = -2
ACTION_NOT_FOUND = -3
ALREADY_PAID = -4
ORDER_NOT_FOUND = -5
TRANSACTION_NOT_FOUND = -6
FAILED_TO_UPDATE_USER = -7
ERROR_IN_REQUEST = -8
TRANSACTION_CANCELLED = -9

INTERNAL_ERROR = TRANSACTION_CANCELLED

SUCCESS_NOTE = 'Success'
SIGN_CHECK_FAILED_NOTE = 'SIGN CHECK FAILED!'
INVALID_SIGNATURE_NOTE = 'Invalid signature'
INCORRECT_AMOUNT_NOTE = 'Incorrect amount. Expected {expected} UZS, got {received} UZS'
ACTION_NOT_FOUND_NOTE = 'Action not found'
ALREADY_PAID_NOTE = 'Order already paid'
PAYME_IN_PROGRESS_NOTE = 'Order is being paid through Payme'
ORDER_NOT_FOUND_NOTE = 'Order not found: {order_id}'
INVALID_SERVICE_ID_NOTE = 'Service ID is invalid'
TRANSACTION_NOT_FOUND_NOTE = 'Transaction does not exist'
ERROR_IN_REQUEST_NOTE = 'Error in request from click'
TRANSACTION_CANCELLED_NOTE = 'Transaction cancelled'
INTERNAL_ERROR_NOTE = 'Internal error'

# Actions
ACTION_PREPARE = '0'
ACTION_COMPLETE = '1'

METHOD_PREPARE = 'prepare'
METHOD_COMPLETE = 'complete'

# Ledger states
STATE_PREPARED = 'prepared'
STATE_CONFIRMED = 'confirmed'
STATE_CANCELLED = 'cancelled'

TRANSACTION_STATES = (
    (STATE_PREPARED, 'Prepared'),
    (STATE_CONFIRMED, 'Confirmed'),
    (STATE_CANCELLED, 'Cancelled'),
)

PAYMENT_URL = 'https://my.click.uz/services/pay'
