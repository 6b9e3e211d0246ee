"""
Shop application.

Merchandise orders paid by mobile money. Catalog browsing lives in the
storefront; this app only tracks orders so payments can be reconciled
against them.
"""
