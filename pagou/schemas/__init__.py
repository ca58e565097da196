"""Schemas — Pydantic models for wire envelopes and transaction payloads."""
