"""
Real HTTP carrier clients.

These clients communicate with carrier systems via HTTP:
- auth.py: credential exchange and session handshake
- policies.py: raw policy document fetch

Important:
- Must return data shaped according to integrations/contracts/*
- Every call carries a real per-call timeout
- Tests and the mock mode point these same clients at an httpx.MockTransport
"""
