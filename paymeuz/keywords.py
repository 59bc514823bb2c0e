from django.conf import settings
from django.utils.translation import gettext_lazy as _

# JSON-RPC / Payme error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
AUTH_FAILED = -32504
SYSTEM_ERROR = -32400

INVALID_AMOUNT = -31001
TRANSACTION_NOT_FOUND = -31003
UNABLE_TO_CANCEL = -31007
UNABLE_TO_PERFORM_OPERATION = -31008
ORDER_NOT_FOUND = -31050
ORDER_ALREADY_PAID = -31051
ORDER_BUSY = -31050

# Transaction states
CREATE_TRANSACTION = 1
CLOSE_TRANSACTION = 2
CANCEL_CREATE_TRANSACTION = -1
CANCEL_CLOSE_TRANSACTION = -2

TRANSACTION_STATES = (
    (CREATE_TRANSACTION, _('created')),
    (CLOSE_TRANSACTION, _('performed')),
    (CANCEL_CREATE_TRANSACTION, _('cancelled')),
    (CANCEL_CLOSE_TRANSACTION, _('cancelled after perform')),
)

# Cancel reasons
REASON_RECEIVER_NOT_FOUND = 1
REASON_PROCESSING_ERROR = 2
REASON_EXECUTION_FAILED = 3
REASON_TIMEOUT = 4
REASON_REFUND = 5
REASON_UNKNOWN = 10

AUTH_FAILED_MESSAGE = {
    "uz": "Ruxsat yo'q",
    "ru": "Недостаточно привилегий для выполнения операции",
    "en": "Insufficient privileges to perform the operation"
}

CONFIGURATION_MISSING_MESSAGE = {
    "uz": "Payme sozlamalari topilmadi",
    "ru": "Отсутствует конфигурация Payme",
    "en": "Payme configuration missing"
}

PARSE_ERROR_MESSAGE = {
    "uz": "JSON xato",
    "ru": "Ошибка разбора JSON",
    "en": "Parse error"
}

INVALID_REQUEST_MESSAGE = {
    "uz": "So'rov noto'g'ri",
    "ru": "Неверный JSON-RPC объект",
    "en": "Invalid JSON-RPC object"
}

METHOD_NOT_FOUND_MESSAGE = {
    "uz": "Metod topilmadi",
    "ru": "Метод не найден",
    "en": "Method not found"
}

SYSTEM_ERROR_MESSAGE = {
    "uz": "Tizimda xatolik",
    "ru": "Системная ошибка",
    "en": "System error"
}

ORDER_BUSY_MESSAGE = {
    "uz": "Buyurtma boshqa tranzaksiya bilan band",
    "ru": "Заказ занят другой транзакцией",
    "en": "Order is occupied with other transaction"
}

ORDER_NOT_FOUND_MESSAGE = {
    'uz': 'Buyurtma topilmadi',
    'ru': 'Заказ не найден',
    'en': 'Order not found'
}

ORDER_ALREADY_PAID_MESSAGE = {
    'uz': "Buyurtma allaqachon to'langan",
    'ru': 'Заказ уже оплачен',
    'en': 'Order already paid'
}

TRANSACTION_NOT_FOUND_MESSAGE = {
    'uz': 'Tranzaksiya topilmadi',
    'ru': 'Транзакция не найдена',
    'en': 'Transaction not found'
}

UNABLE_TO_PERFORM_OPERATION_MESSAGE = {
    'uz': 'Ushbu amalni bajarib bo\'lmaydi',
    'ru': 'Невозможно выполнить данную операцию',
    'en': 'Unable to perform operation'
}

UNABLE_TO_CANCEL_MESSAGE = {
    'uz': 'Buyurtma yetkazilgan, tranzaksiyani bekor qilib bo\'lmaydi',
    'ru': 'Заказ выполнен. Невозможно отменить транзакцию',
    'en': 'Order is delivered, the transaction cannot be cancelled'
}

INVALID_AMOUNT_MESSAGE = {
    'uz': 'Miqdori notog\'ri',
    'ru': 'Неверная сумма',
    'en': 'Invalid amount'
}

METHOD_CHECK_PERFORM_TRANSACTION = 'CheckPerformTransaction'
METHOD_CREATE_TRANSACTION = 'CreateTransaction'
METHOD_CHECK_TRANSACTION = 'CheckTransaction'
METHOD_PERFORM_TRANSACTION = 'PerformTransaction'
METHOD_CANCEL_TRANSACTION = 'CancelTransaction'
METHOD_GET_STATEMENT = 'GetStatement'

PAYCOM_LOGIN = 'Paycom'

TEST_INITIALIZATION_URL = 'https://checkout.test.paycom.uz'
INITIALIZATION_URL = 'https://checkout.paycom.uz'

assert settings.PAYMEUZ_SETTINGS.get('TEST_ENV') is not None
assert settings.PAYMEUZ_SETTINGS.get('MERCHANT_ID') is not None
