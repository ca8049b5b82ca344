"""
Contracts (data models).

This folder defines the request/response shapes for carrier integrations:
- credentials and session context passed between pipeline stages
- per-carrier endpoint configuration
- the canonical policy schema returned to callers

Both mock and real HTTP clients should use these contracts.
"""
