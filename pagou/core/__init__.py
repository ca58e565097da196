"""Core Layer — pure request-policy logic, no IO, no sockets, no event loop.

Invariants:
    - No module in core/ imports from infrastructure/, services/ or client
    - Jitter randomness and the Retry-After clock are injectable

Design Decisions:
    - Functional core separated from the imperative shell that performs attempts
"""
