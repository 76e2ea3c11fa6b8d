"""HTTP surface of mediawatch (FastAPI).

Run with ``mediawatch serve`` or ``uvicorn mediawatch.api:create_app --factory``.
"""

from mediawatch.api.app import create_app

__all__ = ["create_app"]
