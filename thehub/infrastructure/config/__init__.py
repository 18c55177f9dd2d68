from .settings import (
    Settings,
    ServerSettings,
    StorageSettings,
    CorsSettings,
    ClientSettings,
    IdentitySettings,
    STORAGE_BACKENDS,
    get_settings,
)

__all__ = [
    "Settings",
    "ServerSettings",
    "StorageSettings",
    "CorsSettings",
    "ClientSettings",
    "IdentitySettings",
    "STORAGE_BACKENDS",
    "get_settings",
]
