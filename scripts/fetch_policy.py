#!/usr/bin/env python3
"""
Fetch one policy through the full carrier pipeline and print canonical JSON:
- exchange credentials for an access token
- session handshake (session token + policy number)
- fetch the raw policy and normalize it

Use --mock to run against the in-process mock carrier (no network).
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from carrier_gateway.integrations.clients.mocks.mock_carrier import MockCarrier
from carrier_gateway.integrations.contracts.policy import Credentials
from carrier_gateway.integrations.policy.policy_service import PolicyService
from carrier_gateway.utils.config_loader import load_gateway_config


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def run(carrier: str, username: str, password: str, use_mock: bool) -> int:
    config = load_gateway_config()
    transport = None
    if use_mock:
        mock_carrier = MockCarrier(username=username, password=password)
        config = config.model_copy(update={"carriers": {carrier: mock_carrier.config()}})
        transport = mock_carrier.transport

    service = PolicyService(config, transport=transport)
    if not service.supports(carrier):
        print(f"Unsupported carrier: {carrier}", file=sys.stderr)
        print("Set its endpoint variables (see config/carriers.yml) or pass --mock.", file=sys.stderr)
        return 2

    policy = await service.get_policy(carrier, Credentials(username=username, password=password))
    print(policy.model_dump_json(by_alias=True, indent=2))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch and normalize one carrier policy.")
    parser.add_argument("carrier", help="Carrier identifier, e.g. mock-carrier")
    parser.add_argument("--username", "-u", required=True)
    parser.add_argument("--password", "-p", help="Prompted for when omitted")
    parser.add_argument("--mock", action="store_true", help="Use the in-process mock carrier")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    password = args.password or getpass.getpass("Password: ")
    return asyncio.run(run(args.carrier, args.username, password, args.mock))


if __name__ == "__main__":
    sys.exit(main())
