"""API routers."""

from spectral.routers import auth, accounts, maps, folders, media, contributions, health

__all__ = ["auth", "accounts", "maps", "folders", "media", "contributions", "health"]
