# Infrastructure Layer
# ====================
# Contains all external integrations:
# - persistence/: In-memory, SQLite and spreadsheet ledger stores
# - identity/:    Device-scoped user id and display name (local SQLite)
# - importer/:    Legacy spreadsheet import (pandas)
# - whatsapp/:    Checkout composer for WhatsApp order links
# - client/:      HTTP client for the backend endpoint (requests)
# - config/:      Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
