# Application Layer
# =================
# Request routing between the web endpoint and the domain ledgers:
# - router.py:  action dispatch and uniform response envelopes
# - schemas.py: camelCase wire shapes (pydantic)

from .router import RequestRouter, envelope, parse_body

__all__ = ["RequestRouter", "envelope", "parse_body"]
