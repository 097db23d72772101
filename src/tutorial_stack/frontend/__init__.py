"""
Static server for the pre-built single-page app.

The SPA itself is an opaque directory of built assets; this package only
serves it, falling back to ``index.html`` for client-side routes.
"""

from tutorial_stack.frontend.app import create_frontend_app
from tutorial_stack.frontend.settings import FrontendSettings

__all__ = ["FrontendSettings", "create_frontend_app"]
