from enum import Enum

from dashboard_api.errors import ValidationError


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    RWF = "RWF"
    KES = "KES"
    UGX = "UGX"
    TZS = "TZS"
    JPY = "JPY"
    CNY = "CNY"


SUPPORTED_CURRENCIES = [currency.value for currency in Currency]


def normalize_currency(code: str) -> Currency:
    try:
        return Currency(code.strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Invalid currency code. Supported: {', '.join(SUPPORTED_CURRENCIES)}") from exc


def normalize_pair(from_code: str | None, to_code: str | None) -> tuple[Currency, Currency]:
    if not from_code or not to_code:
        raise ValidationError("Missing required parameters: from and to")
    return normalize_currency(from_code), normalize_currency(to_code)
