import logging

import requests
from django.conf import settings
from django.utils import timezone
from rest_framework.parsers import JSONParser, FormParser, MultiPartParser
from rest_framework.views import APIView

from clickuz.keywords import *
from clickuz.signature import verify_sign
from config.helpers import get_request_params, to_int
from config.responses import ClickResponse

logger = logging.getLogger(__name__)

# Shared keep-alive connection pool for upstream calls
session = requests.Session()
session.headers.update({'Content-Type': 'application/json'})


class ClickRelay:
    """Verifies Click signatures and forwards valid calls to the storefront backend."""

    def __init__(self, config=None, http=None):
        self.config = config if config is not None else settings.CLICK_SETTINGS
        self.http = http if http is not None else session

    @property
    def upstream_url(self):
        return self.config.get('UPSTREAM_URL')

    def is_signed(self, params):
        return verify_sign(params, self.config.get('SECRET_KEY'))

    def forward(self, method, params):
        response = self.http.post(
            self.upstream_url,
            json={'method': method, **params},
            timeout=self.config.get('RELAY_TIMEOUT', 15),
        )
        response.raise_for_status()
        return response.json()

    def prepare(self, params):
        if not self.is_signed(params):
            logger.warning(f"Relay prepare rejected, bad signature for trans {params.get('click_trans_id')}")
            return {
                'click_trans_id': params.get('click_trans_id'),
                'merchant_trans_id': params.get('merchant_trans_id'),
                'merchant_prepare_id': 0,
                'error': SIGN_CHECK_FAILED,
                'error_note': INVALID_SIGNATURE_NOTE,
            }

        try:
            return self.forward(METHOD_PREPARE, params)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Relay prepare forward failed: {e}")
            return {
                'click_trans_id': params.get('click_trans_id'),
                'merchant_trans_id': params.get('merchant_trans_id'),
                'merchant_prepare_id': 0,
                'error': INTERNAL_ERROR,
                'error_note': INTERNAL_ERROR_NOTE,
            }

    def complete(self, params):
        if not self.is_signed(params):
            logger.warning(f"Relay complete rejected, bad signature for trans {params.get('click_trans_id')}")
            return {
                'click_trans_id': params.get('click_trans_id'),
                'merchant_trans_id': params.get('merchant_trans_id'),
                'merchant_confirm_id': 0,
                'error': SIGN_CHECK_FAILED,
                'error_note': INVALID_SIGNATURE_NOTE,
            }

        try:
            data = self.forward(METHOD_COMPLETE, params)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Relay complete forward failed: {e}")
            return {
                'click_trans_id': to_int(params.get('click_trans_id'), 0),
                'merchant_trans_id': params.get('merchant_trans_id'),
                'merchant_confirm_id': 0,
                'merchant_prepare_id': to_int(params.get('merchant_prepare_id'), 0),
                'click_paydoc_id': to_int(params.get('click_paydoc_id'), 0),
                'error': INTERNAL_ERROR,
                'error_note': INTERNAL_ERROR_NOTE,
            }

        # Click rejects string ids in the complete answer
        return {
            **data,
            'click_trans_id': to_int(data.get('click_trans_id') or params.get('click_trans_id'), 0),
            'merchant_confirm_id': to_int(data.get('merchant_confirm_id'), 0),
            'merchant_prepare_id': to_int(data.get('merchant_prepare_id') or params.get('merchant_prepare_id'), 0),
            'click_paydoc_id': to_int(params.get('click_paydoc_id') or data.get('click_paydoc_id'), 0),
        }

    def health(self):
        return {
            'status': 'ok',
            'timestamp': timezone.now().isoformat(),
            'config': {
                'service_id': self.config.get('SERVICE_ID'),
                'upstream_url': self.upstream_url,
            },
        }


class RelayView(APIView):
    authentication_classes = ()
    permission_classes = ()
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_relay(self):
        return ClickRelay()


class RelayPrepareView(RelayView):

    def post(self, request):
        return ClickResponse(self.get_relay().prepare(get_request_params(request)))


class RelayCompleteView(RelayView):

    def post(self, request):
        return ClickResponse(self.get_relay().complete(get_request_params(request)))


class HealthView(RelayView):

    def get(self, request):
        return ClickResponse(self.get_relay().health())
