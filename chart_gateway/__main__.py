#!/usr/bin/env python3
"""
Application Startup Script

Usage:
    python -m chart_gateway
    chart-gateway

Author: Senior Solution Architect
Date: 2025-12-05
"""

import sys

import uvicorn

from chart_gateway.core.config.settings import get_settings
from chart_gateway.core.exceptions import ConfigurationError


def main():
    """Start the gateway under uvicorn."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"[x] {e.message}: {', '.join(e.details['fields'])}")
        print(f"    {e.details['suggestion']}")
        sys.exit(1)

    print("=" * 60)
    print(f"{settings.app.APP_NAME} - Startup")
    print("=" * 60)
    print(f"Provider:   {settings.CHART_PROVIDER}")
    print(f"Chart-IMG:  {'configured' if settings.upstream_configured else 'API key missing'}")
    print(f"Listening:  http://{settings.app.API_HOST}:{settings.app.API_PORT}")
    print()

    try:
        uvicorn.run(
            "chart_gateway.application.app:create_app",
            factory=True,
            host=settings.app.API_HOST,
            port=settings.app.API_PORT,
            reload=settings.app.ENVIRONMENT == "development",
            log_level=settings.logging.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        print("\n\n[!] Shutting down gracefully...")
        sys.exit(0)


if __name__ == "__main__":
    main()
