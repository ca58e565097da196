"""Infrastructure Layer — network attempts, deadlines, paging and logging.

Invariants:
    - Every network exchange goes through RequestExecutor (retry/timeout/error mapping)
    - No raw httpx exception escapes this layer

Design Decisions:
    - Thin shell around the pure policies in core/
"""
