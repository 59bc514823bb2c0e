import logging

import requests
from django.conf import settings

from config.validators import format_phone

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"

GATEWAY_NAMES = {
    'payme': 'Payme',
    'click': 'Click',
}


class TelegramNotification:
    """Telegram Bot API sender"""

    @classmethod
    def is_valid_chat_id(cls, chat_id):
        if chat_id is None:
            return False
        chat_id = str(chat_id)
        # Demo accounts of the Mini App have ids like "demo-123"
        if chat_id.startswith('demo-'):
            return False
        return chat_id.lstrip('-').isdigit()

    @classmethod
    def send_message(cls, chat_id, text):
        token = settings.TELEGRAM_BOT_TOKEN
        if not token:
            logger.info("Telegram bot token is not configured, skipping message")
            return False

        if not cls.is_valid_chat_id(chat_id):
            logger.info(f"Skipping Telegram message for chat {chat_id}")
            return False

        data = {
            "chat_id": chat_id,
            "parse_mode": "HTML",
            "text": text,
        }

        try:
            response = requests.post(
                url=TELEGRAM_API_URL.format(token=token, method='sendMessage'),
                json=data,
                timeout=settings.TELEGRAM_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"Telegram sendMessage failed for chat {chat_id}: {e}")
            return False

        if not response.ok:
            logger.error(f"Telegram sendMessage rejected for chat {chat_id}: {response.text}")
            return False

        logger.info(f"Telegram message sent to {chat_id}")
        return True


def build_order_status_message(order, gateway=None):
    gateway_name = GATEWAY_NAMES.get(gateway, gateway or '')

    if order.status == order.Status.APPROVED:
        message = "✅ <b>To'lov muvaffaqiyatli!</b>\n\n"
        message += f"Buyurtma: <b>#{order.order_number}</b>\n"
        message += f"Summa: <b>{order.total} so'm</b>\n"
        if gateway_name:
            message += f"To'lov turi: {gateway_name}\n"
        if order.user_phone:
            message += f"Telefon: {format_phone(order.user_phone)}\n"
        message += "\nBuyurtmangiz tasdiqlandi va tez orada yuboriladi."
        return message

    if order.status == order.Status.REJECTED:
        message = "❌ <b>To'lov bekor qilindi</b>\n\n"
        message += f"Buyurtma: <b>#{order.order_number}</b>\n"
        message += f"Summa: <b>{order.total} so'm</b>\n\n"
        message += "To'lovingiz bekor qilindi yoki rad etildi."
        return message

    return None


def send_order_status(order, gateway=None):
    message = build_order_status_message(order, gateway)
    if message is None:
        return False
    return TelegramNotification.send_message(order.telegram_chat_id, message)
