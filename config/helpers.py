import time

from django.conf import settings
from django.http import QueryDict


def current_timestamp():
    """Unix time in milliseconds, the unit both gateways use."""
    return int(round(time.time() * 1000))


def get_client_ip(request):
    """
    Address of the caller as seen by the outermost trusted proxy.

    Only the last ``NUM_PROXIES`` entries of X-Forwarded-For are written by
    our own proxies; anything before them comes from the client.
    """
    remote_addr = request.META.get('REMOTE_ADDR')
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    num_proxies = getattr(settings, 'REST_FRAMEWORK', {}).get('NUM_PROXIES') or 0
    if not x_forwarded_for or num_proxies <= 0:
        return remote_addr

    addrs = [addr.strip() for addr in x_forwarded_for.split(',') if addr.strip()]
    if not addrs:
        return remote_addr
    return addrs[-min(num_proxies, len(addrs))]


def to_int(value, default=None):
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def get_request_params(request):
    """DRF request body and query string merged into a flat dict, query string wins."""
    params = {}
    data = request.data
    if isinstance(data, QueryDict):
        data = data.dict()
    if isinstance(data, dict):
        params.update(data)
    params.update(request.query_params.dict())
    return params
