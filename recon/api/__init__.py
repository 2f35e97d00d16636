"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from recon.api import app

    uvicorn recon.api:app --reload
"""

from recon.api.app import app

__all__ = ["app"]
