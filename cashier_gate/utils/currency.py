from typing import Optional
from cashier_gate.settings import settings

# Codes whose display form differs from the API code
_DISPLAY_CODES = {
    "UST": "USDT",
    "TUSDT": "USDT",
    "EUSDT": "USDT",
}


def is_cryptocurrency(currency: Optional[str]) -> bool:
    return bool(currency) and currency.upper() in settings.crypto_currencies()


def get_min_withdrawal(currency: Optional[str]) -> float:
    if is_cryptocurrency(currency):
        return float(settings.CRYPTO_MIN_WITHDRAWAL)
    return float(settings.FIAT_MIN_WITHDRAWAL)


def display_code(currency: Optional[str]) -> str:
    code = (currency or "").upper()
    return _DISPLAY_CODES.get(code, code)
