"""API routers: ``tutorials`` (CRUD) and ``pipeline`` (push webhook)."""
