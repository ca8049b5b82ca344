#!/usr/bin/env python3
"""
Start the gateway API.

Usage:
  python scripts/run_server.py            # port from PORT (default 3000)
  INTEGRATIONS_MODE=mock python scripts/run_server.py
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from carrier_gateway.api.main import app


def main() -> int:
    port = app.state.config.port
    print(f"Server running on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
