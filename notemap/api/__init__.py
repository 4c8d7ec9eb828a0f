"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from notemap.api import create_app

    uvicorn --factory notemap.api:create_app --reload
"""

from notemap.api.app import create_app

__all__ = ["create_app"]
