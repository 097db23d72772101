"""ASGI app that serves the built SPA.

Resolution for ``GET /<path>``:

1. an existing file under ``static_dir`` is served as-is;
2. a path whose last segment has a file extension (``/app.js``) and does
   not exist is a 404, so missing assets are not masked by the index;
3. anything else is a client-side route and gets ``index.html``.

Paths that resolve outside ``static_dir`` and paths containing a NUL byte are always 404.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, Response

from tutorial_stack import __version__
from tutorial_stack.api.middleware.errors import problem_response
from tutorial_stack.core.health import create_health_router
from tutorial_stack.core.logging import get_logger
from tutorial_stack.frontend.settings import FrontendSettings

logger = get_logger(__name__)


class StaticSite:
    """File lookup confined to one root directory."""

    def __init__(self, root: Path, index_file: str = "index.html", max_age_s: int = 3600) -> None:
        self.root = root.resolve()
        self.index = self.root / index_file
        self.max_age_s = max_age_s

    def locate(self, path: str) -> Path | None:
        """The file to serve for *path*, or ``None`` for a 404."""
        relative = path.lstrip("/")
        if relative:
            if "\x00" in relative:
                logger.warning("frontend.bad_path", path=path)
                return None
            candidate = (self.root / relative).resolve()
            if not candidate.is_relative_to(self.root):
                logger.warning("frontend.path_escape", path=path)
                return None
            if candidate.is_file():
                return candidate
            if PurePosixPath(relative).suffix:
                return None
        return self.index if self.index.is_file() else None

    def response_for(self, file: Path) -> FileResponse:
        if file == self.index:
            cache = "no-cache"
        else:
            cache = f"public, max-age={self.max_age_s}"
        return FileResponse(file, headers={"Cache-Control": cache})


def create_frontend_app(settings: FrontendSettings | None = None) -> FastAPI:
    """Build the front-end ASGI app."""
    settings = settings or FrontendSettings()
    site = StaticSite(settings.static_dir, settings.index_file, settings.asset_max_age_s)

    app = FastAPI(title="tutorials-frontend", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.site = site

    app.include_router(create_health_router("tutorials-frontend", version=__version__))

    @app.api_route("/{path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    async def serve(request: Request, path: str) -> Response:
        file = site.locate(path)
        if file is None:
            return problem_response(status=404, title="Not Found", instance=request.url.path)
        return site.response_for(file)

    if not site.index.is_file():
        logger.warning("frontend.index_missing", index=str(site.index))
    return app
