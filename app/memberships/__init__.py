"""
Memberships application.

Supporter membership plans, the upgrade checkout that creates a pending
membership with its payment obligation, and activation once the payment
is reconciled.
"""
