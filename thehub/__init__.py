# TheHub JA - Reviews, Votes & Checkout Backend
# ==============================================
# Backend for the TheHub JA / Jeffery Flowers storefront, built as a
# Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI web endpoint and CLI entry points
# - Application:    Request routing and response envelopes
# - Domain:         Vote/review ledgers and aggregation (no external dependencies)
# - Infrastructure: Storage backends, identity, WhatsApp checkout, HTTP client
#
# Storage is injected, so the in-memory, SQLite and spreadsheet backends
# are interchangeable without touching the domain or application layers.

__version__ = "1.0.0"
