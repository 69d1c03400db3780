"""Static admin console, served from a prebuilt single-page app bundle."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ADMIN_UI_PATH = "/admin"


class SinglePageApp(StaticFiles):
    """StaticFiles that answers unknown paths with ``index.html`` for client-side routing."""

    async def get_response(self, path: str, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == 404:
            return await super().get_response("index.html", scope)
        return response


def mount_admin_ui(app: FastAPI, directory: Optional[str]) -> bool:
    """Mount the console at /admin when ``directory`` holds a built bundle.

    Returns False (and mounts nothing) when the directory is missing.
    """
    if not directory or not Path(directory).is_dir():
        logger.info("Admin UI not mounted; no bundle at %s", directory)
        return False

    app.mount(ADMIN_UI_PATH, SinglePageApp(directory=directory, html=True), name="admin-ui")
    logger.info("Admin UI mounted", extra={"directory": directory})
    return True
