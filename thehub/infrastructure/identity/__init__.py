from .identity_store import IdentityStore

__all__ = ["IdentityStore"]
