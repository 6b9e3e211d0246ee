"""
System checks for payment configuration.

Payment codes are useless without valid merchant shortcodes. In
production (DEBUG off) a bad shortcode is an error that stops the
process; in development it is a warning.
"""

from django.conf import settings
from django.core import checks

from payments.codes import is_valid_shortcode

SHORTCODE_SETTINGS = {
    "mtn": "MTN_MOMO_PAY_CODE",
    "airtel": "AIRTEL_MONEY_PAY_CODE",
}


@checks.register(checks.Tags.compatibility)
def check_payment_shortcodes(app_configs, **kwargs):
    configured = getattr(settings, "PAYMENT_SHORTCODES", {}) or {}
    invalid = [
        env_name
        for channel, env_name in SHORTCODE_SETTINGS.items()
        if not is_valid_shortcode(configured.get(channel))
    ]
    if not invalid:
        return []

    message = f"Missing or invalid payment shortcode configuration: {', '.join(invalid)}"
    hint = "Shortcodes must be at least three digits."
    if settings.DEBUG:
        return [checks.Warning(message, hint=hint, id="payments.W001")]
    return [checks.Error(message, hint=hint, id="payments.E001")]
