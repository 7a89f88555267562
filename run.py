#!/usr/bin/env python3
"""
Fund Ledger Entry Point

Starts the FastAPI server on the configured host and port
(LEDGER_API_HOST / LEDGER_API_PORT, default 127.0.0.1:5000).
"""

import sys

from fund_ledger.api import run_server
from fund_ledger.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Fund Ledger...")
    print(f"Storage: {config.storage_type}")
    print(f"API available at: http://{config.api_host}:{config.api_port}")
    print(f"Documentation at: http://{config.api_host}:{config.api_port}/docs")
    print()

    try:
        run_server(debug=False)
    except KeyboardInterrupt:
        print("\nShutting down Fund Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
