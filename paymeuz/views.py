import logging

from drf_yasg.utils import swagger_auto_schema
from rest_framework.exceptions import ParseError
from rest_framework.views import APIView

from config.responses import PaymeResponseSuccess, PaymeResponseFail
from .keywords import *
from .payme.service import PaymeService, PaymeError
from .serializers import PaycomOperationSerializer

logger = logging.getLogger(__name__)


class PaymeCallbackView(APIView):
    """
    Payme Merchant API callback endpoint

    Payme will call this URL with JSON-RPC 2.0 format
    """
    authentication_classes = ()
    permission_classes = ()

    def get_service(self):
        return PaymeService()

    @swagger_auto_schema(
        operation_id='payme_callback',
        operation_description="Payme Merchant API (JSON-RPC 2.0)",
        request_body=PaycomOperationSerializer(),
    )
    def post(self, request):
        # 1. Parse request
        try:
            data = request.data
        except ParseError:
            logger.warning("Payme callback with malformed JSON")
            return PaymeResponseFail(PARSE_ERROR, PARSE_ERROR_MESSAGE)

        request_id = data.get('id') if isinstance(data, dict) else None
        service = self.get_service()

        # 2. Check authentication
        if not service.is_configured():
            logger.error("Payme keys are not configured")
            return PaymeResponseFail(SYSTEM_ERROR, CONFIGURATION_MISSING_MESSAGE, request_id)

        if not service.check_auth(request.headers.get('Authorization')):
            logger.warning(f"Payme callback with invalid credentials, request {request_id}")
            return PaymeResponseFail(AUTH_FAILED, AUTH_FAILED_MESSAGE, request_id)

        serializer = PaycomOperationSerializer(data=data)
        if not serializer.is_valid():
            return PaymeResponseFail(INVALID_REQUEST, INVALID_REQUEST_MESSAGE, request_id,
                                     data=serializer.errors)

        method = serializer.validated_data['method']
        params = serializer.validated_data['params']
        logger.info(f"Payme callback: {method} - Params: {params}")

        # 3. Route to appropriate handler
        try:
            result = service.handle(method, params)
        except PaymeError as e:
            logger.info(f"Payme {method} error {e.code}: {e}")
            return PaymeResponseFail(e.code, e.message, request_id, data=e.data)
        except Exception as e:
            logger.exception(f"Payme handler error: {e}")
            return PaymeResponseFail(SYSTEM_ERROR, SYSTEM_ERROR_MESSAGE, request_id, data=str(e))

        logger.info(f"Payme response: {result}")
        return PaymeResponseSuccess(result, request_id)
