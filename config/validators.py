import re
import phonenumbers
from django.core.exceptions import ValidationError
from django.utils.deconstruct import deconstructible

PHONE_ERROR = "Telefon raqam noto‘g‘ri"


def normalize_phone(value: str) -> str:
    """
    Telegram contact sharing and manual input both end up as 998XXXXXXXXX

    +998 90 123 45 67, 0901234567, 901234567 => 998901234567
    """
    digits = re.sub(r'[^0-9]+', '', value or '')

    if len(digits) == 12 and digits.startswith("998"):
        return digits
    if len(digits) == 10 and digits.startswith("0"):
        return "998" + digits[1:]
    if len(digits) == 9:
        return "998" + digits

    raise ValidationError(PHONE_ERROR)


def format_phone(value: str) -> str:
    """998901234567 => +998 90 123 45 67 (falls back to the raw value)"""
    try:
        parsed = phonenumbers.parse("+" + normalize_phone(value))
    except (ValidationError, phonenumbers.NumberParseException):
        return value or ''
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)


@deconstructible
class PhoneValidator:
    def __call__(self, value):
        try:
            parsed = phonenumbers.parse("+" + normalize_phone(value))
        except phonenumbers.NumberParseException:
            raise ValidationError(PHONE_ERROR)

        if not phonenumbers.is_valid_number(parsed) or parsed.country_code != 998:
            raise ValidationError(PHONE_ERROR)
