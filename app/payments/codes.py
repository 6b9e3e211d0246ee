"""
Mobile money payment codes.

Fans pay by dialing a USSD string on their phone. The string encodes
the merchant shortcode for the chosen operator and the amount:

    *182*1*<shortcode>*<amount>%23

"#" is URL-encoded so the code can be used directly in a tel: link.

Usage:
    from payments.codes import build_payment_code

    build_payment_code("airtel", 50000)  # "*182*1*250650*50000%23"
"""

from __future__ import annotations

import re

from django.conf import settings

from payments.state_machines import PaymentChannel

SHORTCODE_PATTERN = re.compile(r"^[0-9]{3,}$")


def normalize_channel(channel: str | None) -> str:
    """Anything other than "airtel" pays through MTN."""
    if (channel or "").strip().lower() == PaymentChannel.AIRTEL:
        return PaymentChannel.AIRTEL
    return PaymentChannel.MTN


def is_valid_shortcode(value: str | None) -> bool:
    return isinstance(value, str) and bool(SHORTCODE_PATTERN.match(value.strip()))


def get_shortcode(channel: str | None) -> str:
    """
    Return the configured shortcode for a channel.

    Invalid or missing configuration yields "" (reported at startup by
    the payments system check).
    """
    raw = settings.PAYMENT_SHORTCODES.get(normalize_channel(channel), "")
    return raw.strip() if is_valid_shortcode(raw) else ""


def build_payment_code(channel: str | None, amount: int) -> str:
    shortcode = get_shortcode(channel)
    return f"*182*1*{shortcode}*{max(int(amount), 0)}%23"
