"""Ops console access control engine."""
