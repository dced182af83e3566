"""
Rates Hub components.

- core/: constants, log context
- connection/: handle, registry, heartbeat
- events/: outbound payload types
- metrics/: counters
- endpoints/: WebSocket endpoint classes
"""
