"""
Mock integration clients.

The mock carrier answers the carrier endpoints in-process without calling any
external API. It is used when:
- carrier endpoints are not reachable from a development machine
- we want to test the pipeline end-to-end without external dependencies

Important:
- The real HTTP clients are used unchanged; only the httpx transport is swapped.
- Responses follow the same wire shapes as a real carrier.

Switching:
Set INTEGRATIONS_MODE=mock to serve "mock-carrier" from MockCarrier in
carrier_gateway/api/main.py.
"""
