"""Content API routers, mounted under ``settings.api_prefix``."""
