import logging
from ipaddress import ip_address, ip_network

from django.conf import settings
from django.http import JsonResponse

from config.helpers import get_client_ip
from paymeuz.keywords import AUTH_FAILED, AUTH_FAILED_MESSAGE

logger = logging.getLogger(__name__)


class PaymentSecurityMiddleware:
    """
    Security middleware for payment endpoints

    Rejects Payme callbacks coming from outside the Payme networks when
    ``PAYMEUZ_SETTINGS['CHECK_IP']`` is on.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        config = settings.PAYMEUZ_SETTINGS

        if config.get('CHECK_IP') and request.path.startswith(config.get('CALLBACK_PATH', '/api/payme/')):
            if not self.verify_payme_ip(request, config.get('ALLOWED_IPS') or []):
                logger.warning(f"Unauthorized Payme callback attempt from {get_client_ip(request)}")
                return JsonResponse({
                    'jsonrpc': '2.0',
                    'id': None,
                    'error': {
                        'code': AUTH_FAILED,
                        'message': AUTH_FAILED_MESSAGE,
                    }
                }, status=403)

        return self.get_response(request)

    @staticmethod
    def verify_payme_ip(request, allowed):
        """Verify request is from Payme IP"""
        try:
            client = ip_address(get_client_ip(request))
        except ValueError:
            return False

        return any(client in ip_network(ip_range) for ip_range in allowed)
