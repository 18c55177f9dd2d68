"""
Error Taxonomy
==============

Two failure families cross the request boundary:

- ValidationError: missing/malformed field, out-of-range rating,
  unknown vote type, malformed JSON body.
- StorageError: schema initialisation or underlying I/O failure.

Both are converted to a `{success: false, message}` envelope by the
request router; the message is shown to the user as-is.
"""


class HubError(Exception):
    """Base exception for all backend errors."""
    pass


class ValidationError(HubError):
    """Raised when a request field or local input is missing or invalid."""
    pass


class StorageError(HubError):
    """Raised when a store cannot be initialised, read or written."""
    pass
