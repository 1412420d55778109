#!/usr/bin/env python3
"""
Personal Finance Ledger Entry Point

Starts the FastAPI server using the configured host and port.
"""

import sys

from personal_finance.api import run_server
from personal_finance.config import get_config
from personal_finance.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    setup_logging(config.log_level)

    print("Starting Personal Finance Ledger...")
    print(f"Storage backend: {config.storage_backend}")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Personal Finance Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
