"""
Tickets application.

Match ticketing: capacity-safe checkout, pass issuance once an order is
paid, gate verification, token rotation and pass transfers.

Key components:
    - models: Match, TicketOrder, TicketOrderItem, TicketPass, GateScan
    - services.CheckoutService: Pending orders under the seat-capacity invariant
    - services.PassService: Pass lifecycle and gate verification
    - zones: Zone capacity/price/gate table from settings.TICKET_ZONES
"""
