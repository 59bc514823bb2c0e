from rest_framework.response import Response
from rest_framework import status


class ResponseFail(Response):
    def __init__(self, data="", request=""):
        data = {"status": "fail", "data": data, "request": request}
        super().__init__(data, status=status.HTTP_200_OK)


class ResponseSuccess(Response):
    def __init__(self, data="", request=""):
        data = {"status": "success", "data": data, "request": request}
        super().__init__(data, status=status.HTTP_200_OK)


class PaymeResponseSuccess(Response):
    def __init__(self, result=None, request_id=None):
        data = {"jsonrpc": "2.0", "id": request_id, "result": result}
        super().__init__(data, status=status.HTTP_200_OK)


class PaymeResponseFail(Response):
    """JSON-RPC error envelope.

    Payme expects HTTP 200 even for protocol errors, authorization failures
    included.
    """

    def __init__(self, code, message, request_id=None, data=None):
        error = {"code": code, "message": message}
        if data is not None:
            error["data"] = data
        super().__init__({"jsonrpc": "2.0", "id": request_id, "error": error}, status=status.HTTP_200_OK)


class ClickResponse(Response):
    def __init__(self, data=None):
        super().__init__(data or {}, status=status.HTTP_200_OK)
