"""
Tutorials REST API.

Usage::

    from tutorial_stack.api import create_app
    app = create_app()
"""

from tutorial_stack.api.app import create_app

__all__ = ["create_app"]
