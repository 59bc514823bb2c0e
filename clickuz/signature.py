import hashlib
import hmac

from clickuz.keywords import ACTION_COMPLETE


def build_sign_string(params, secret_key):
    """
    Concatenate the signed Click fields.

    ``merchant_prepare_id`` takes part only in the complete (action 1) call.
    """
    action = str(params.get('action', ''))
    parts = [
        params.get('click_trans_id', ''),
        params.get('service_id', ''),
        secret_key,
        params.get('merchant_trans_id', ''),
    ]
    if action == ACTION_COMPLETE and params.get('merchant_prepare_id'):
        parts.append(params.get('merchant_prepare_id'))
    parts += [
        params.get('amount', ''),
        action,
        params.get('sign_time', ''),
    ]
    return ''.join(str(part) for part in parts)


def make_sign(params, secret_key):
    return hashlib.md5(build_sign_string(params, secret_key).encode('utf-8')).hexdigest()


def verify_sign(params, secret_key):
    sign_string = str(params.get('sign_string') or '')
    if not sign_string or not secret_key:
        return False
    return hmac.compare_digest(make_sign(params, secret_key), sign_string.lower())
