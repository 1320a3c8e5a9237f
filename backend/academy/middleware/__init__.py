"""
Academy Backend: Middleware Package
====================================

What:  Request-wide concerns applied before any route runs.

Execution order for a request:
    Request → [Request ID] → [Access log] → [GZip] → [CORS] → route

The access log reads the request ID, so the ID middleware must be the
outer of the two (added last).
"""
