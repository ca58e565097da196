"""Pagou Python Client — async client for the Pagou transactions API.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, e.g. `from pagou.client import PagouClient`
"""
