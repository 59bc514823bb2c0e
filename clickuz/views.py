import logging

from drf_yasg.utils import swagger_auto_schema
from rest_framework.exceptions import ParseError
from rest_framework.parsers import JSONParser, FormParser, MultiPartParser
from rest_framework.views import APIView

from config.helpers import get_request_params
from config.responses import ClickResponse
from .keywords import *
from .serializers import ClickRequestSerializer, ClickCallbackSerializer
from .services import ClickService, ClickError

logger = logging.getLogger(__name__)


def error_response(method, params, code, note):
    data = {
        'click_trans_id': params.get('click_trans_id'),
        'merchant_trans_id': params.get('merchant_trans_id'),
        'error': code,
        'error_note': note,
    }
    if method == METHOD_COMPLETE:
        data['merchant_confirm_id'] = 0
    else:
        data['merchant_prepare_id'] = 0
    return ClickResponse(data)


class BaseClickView(APIView):
    authentication_classes = ()
    permission_classes = ()
    parser_classes = (JSONParser, FormParser, MultiPartParser)

    def get_service(self):
        return ClickService()

    def get_params(self, request):
        try:
            return get_request_params(request)
        except ParseError:
            return None

    def process(self, method, params):
        logger.info(f"Click {method}: {params}")

        serializer = ClickRequestSerializer(data=params)
        if not serializer.is_valid():
            logger.warning(f"Click {method} with invalid request: {serializer.errors}")
            return error_response(method, params, ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)

        service = self.get_service()
        handler = service.prepare if method == METHOD_PREPARE else service.complete

        try:
            result = handler(params)
        except ClickError as e:
            logger.info(f"Click {method} error {e.code}: {e.note}")
            return error_response(method, params, e.code, e.note)
        except Exception as e:
            logger.exception(f"Click {method} handler error: {e}")
            return error_response(method, params, INTERNAL_ERROR, INTERNAL_ERROR_NOTE)

        logger.info(f"Click {method} response: {result}")
        return ClickResponse(result)


class ClickCallbackView(BaseClickView):
    """
    Click callback endpoint

    The action is taken from the ``method`` field (``prepare`` / ``complete``),
    which is how the relay forwards requests.
    """

    @swagger_auto_schema(
        operation_id='click_callback',
        operation_description="Click prepare/complete, discriminated by `method`",
        request_body=ClickCallbackSerializer(),
    )
    def post(self, request):
        params = self.get_params(request)
        if params is None:
            return error_response(None, {}, ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)

        method = params.get('method')
        if method not in (METHOD_PREPARE, METHOD_COMPLETE):
            logger.warning(f"Click callback with unknown method {method}")
            return ClickResponse({'error': ACTION_NOT_FOUND, 'error_note': ACTION_NOT_FOUND_NOTE})

        return self.process(method, params)


class ClickPrepareView(BaseClickView):

    @swagger_auto_schema(
        operation_id='click_prepare',
        operation_description="Click prepare (action 0)",
        request_body=ClickRequestSerializer(),
    )
    def post(self, request):
        params = self.get_params(request)
        if params is None:
            return error_response(METHOD_PREPARE, {}, ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)
        return self.process(METHOD_PREPARE, params)


class ClickCompleteView(BaseClickView):

    @swagger_auto_schema(
        operation_id='click_complete',
        operation_description="Click complete (action 1)",
        request_body=ClickRequestSerializer(),
    )
    def post(self, request):
        params = self.get_params(request)
        if params is None:
            return error_response(METHOD_COMPLETE, {}, ERROR_IN_REQUEST, ERROR_IN_REQUEST_NOTE)
        return self.process(METHOD_COMPLETE, params)
