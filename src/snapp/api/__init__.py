"""
snapp-builder HTTP API.

``create_app()`` builds the FastAPI application; ``uvicorn`` can load it as
a factory::

    uvicorn snapp.api:create_app --factory --port 12010
"""

from snapp.api.app import create_app

__all__ = ["create_app"]
