"""HTTP trigger blueprint — health check and manual sync endpoints."""

import json
import logging

import azure.functions as func

from onedrive_client import __version__
from onedrive_client.config import load_config
from onedrive_client.orchestration.sync import drive_sync_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint.

    Returns service status, version and the drive user the sync runs against.
    A missing required setting is reported as ``configured: false``.
    """
    logger.info("[health_check] health check requested")

    try:
        try:
            drive_user: str | None = load_config().drive_user
        except KeyError as exc:
            logger.warning("[health_check] missing setting; name:%s", exc)
            drive_user = None
        body = json.dumps(
            {
                "status": "ok",
                "version": __version__,
                "configured": drive_user is not None,
                "drive_user": drive_user,
            }
        )
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")


@bp.route(route="sync", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manual_sync(req: func.HttpRequest) -> func.HttpResponse:
    """Manual sync endpoint — runs one change-tracking cycle on demand.

    Requires a function key for authentication. Executes the same logic
    as the timer trigger but returns the changes in the HTTP response.
    """
    logger.info("[manual_sync] manual sync requested")

    try:
        config = load_config()
        result = drive_sync_from_config(config).run()

        changed = [
            {"id": item.id, "name": item.name, "parent_path": item.parent_path}
            for item in result.changed
        ]
        deleted = [{"id": item.id} for item in result.deleted]
        logger.info(
            "[manual_sync] sync complete; changed:%d;deleted:%d",
            len(changed),
            len(deleted),
        )

        body = json.dumps(
            {
                "status": "ok",
                "full_resync": result.full_resync,
                "changed": changed,
                "deleted": deleted,
            }
        )
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[manual_sync] manual sync failed", exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")
