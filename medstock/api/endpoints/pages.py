# medstock/api/endpoints/pages.py
import os
import posixpath
from pathlib import Path

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles

from medstock.core.config import get_settings
from medstock.core.exceptions import NotFoundError
from medstock.dependencies.auth import require_page_session

router = APIRouter()

PROTECTED_PAGES = ("dashboard.html", "categories.html", "index.html", "settings.html")


@router.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    return RedirectResponse("/login.html", status_code=status.HTTP_302_FOUND)


def _page_endpoint(page_name: str):
    def serve_page() -> FileResponse:
        path = Path(get_settings().static_dir) / page_name
        if not path.is_file():
            raise NotFoundError("Page not found.")
        return FileResponse(path, media_type="text/html")

    serve_page.__name__ = f"page_{page_name.replace('.', '_')}"
    return serve_page


for _page in PROTECTED_PAGES:
    router.add_api_route(
        f"/{_page}",
        _page_endpoint(_page),
        methods=["GET"],
        dependencies=[Depends(require_page_session)],
        include_in_schema=False,
    )


class StaticAssets(StaticFiles):
    """
    Login page, scripts and styles.

    Protected pages share the directory, so any path that normalises to one
    of them is sent back to its guarded route instead of being served.
    """

    async def get_response(self, path: str, scope) -> Response:
        page = posixpath.normpath(path.replace(os.sep, "/")).strip("/")
        if page in PROTECTED_PAGES:
            return RedirectResponse(f"/{page}", status_code=status.HTTP_302_FOUND)
        return await super().get_response(path, scope)
