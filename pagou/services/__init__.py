"""Services Layer — resource methods mapping domain parameters to path/verb/body.

Invariants:
    - Resource methods hold no retry, timeout or classification logic
"""
