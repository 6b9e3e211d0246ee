"""
Payments application.

Mobile money reconciliation. Fans pay out-of-band by dialing a USSD
code; an upstream parser turns the operator's SMS into a ParsedPayment,
and this app matches it to the PaymentObligation it settles.

This app handles:
- ParsedPayment and PaymentObligation storage
- Matching, confidence gating and manual review
- Operator attach of an SMS to an obligation
- USSD payment codes per operator

Related apps:
    - tickets, memberships, shop, fundraising: entities an obligation settles
    - realtime: confirmation and manual-review events

Usage:
    from payments.tasks import process_parsed_payment

    process_parsed_payment.delay(str(parsed_payment.id))
"""
