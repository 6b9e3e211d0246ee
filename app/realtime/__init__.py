"""
Realtime application.

Fans out domain events (order confirmations, manual-review flags, gate
scans) to connected staff dashboards over Django Channels.

Key components:
    - broadcaster: Injectable transport; a no-op until attached
    - events.RealtimeService: Named domain events with normalized payloads
    - consumers.RealtimeConsumer: Staff WebSocket endpoint

Usage:
    from realtime.events import RealtimeService

    RealtimeService.notify_manual_review(parsed_payment_id=pp.id, amount=pp.amount, ...)
"""
