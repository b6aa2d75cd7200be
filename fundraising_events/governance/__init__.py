"""Governance: immutable audit logging of administrative actions. No FastAPI."""
