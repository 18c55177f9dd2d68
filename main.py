"""
TheHub Reviews - Web Server Entry Point
=======================================

Run this to start the reviews & votes endpoint:
    python main.py

Then point the storefront at http://127.0.0.1:8000/exec

To import a legacy spreadsheet export:
    python import_sheet.py legacy_export.xlsx
"""

import logging

import uvicorn

from thehub.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.server.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("\n" + "=" * 50)
    print("   TheHub Reviews - Votes & Reviews Endpoint")
    print("=" * 50)
    print(f"\n   Storage: {settings.storage.backend}")
    print(f"   Allowed origin: {settings.cors.allowed_origin}")
    print(f"   Starting server at http://{settings.server.host}:{settings.server.port}/exec")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "thehub.web.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
        log_level=settings.server.log_level
    )


if __name__ == "__main__":
    main()
