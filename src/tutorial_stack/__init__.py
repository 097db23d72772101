"""
tutorial-stack - A tutorial-management CRUD service and its delivery tooling.

Subpackages:
- tutorial_stack.core: logging, errors, settings, health, ORM primitives
- tutorial_stack.ops: transport-agnostic tutorial operations
- tutorial_stack.api: FastAPI REST service
- tutorial_stack.frontend: static single-page-app server
- tutorial_stack.proxy: path-prefix reverse proxy (single ingress)
- tutorial_stack.deploy: compose generation and the build/publish/deploy pipeline
- tutorial_stack.cli: ``tutorial-stack`` command line
"""

__version__ = "0.1.0"
