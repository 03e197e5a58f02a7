"""
Task tracker API package.

Build the ASGI application with tracker_api.main.create_app; nothing is
connected at import time. Serve it with
``uvicorn --factory tracker_api.main:create_app``.
"""

__version__ = "0.1.0"
