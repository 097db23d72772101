"""
Core primitives shared by every tutorial-stack service.

Nothing in here knows about HTTP or the CLI; ``api``, ``proxy``, ``frontend``
and ``deploy`` all build on these modules.

Modules
-------
logging     structlog configuration and context binding
errors      typed exception hierarchy with categories
settings    pydantic-settings base class
health      ``/health`` router factory and response models
orm         SQLAlchemy declarative base, engine/session factory, tables
repository  data access for the ``tutorials`` table
"""
