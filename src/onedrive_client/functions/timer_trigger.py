"""Timer trigger blueprint — scheduled incremental drive sync."""

import logging

import azure.functions as func

from onedrive_client.config import load_config
from onedrive_client.orchestration.sync import drive_sync_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.timer_trigger(
    schedule="0 */5 * * * *",
    arg_name="timer",
    run_on_startup=False,
)
def timer_trigger(timer: func.TimerRequest) -> None:
    """Scheduled trigger that tracks OneDrive changes.

    Runs every 5 minutes. Resumes from the stored delta link, logs every
    changed and deleted item, and stores the new delta link.
    """
    logger.info("Timer trigger fired")

    try:
        if timer.past_due:
            logger.warning("Timer trigger is past due")

        config = load_config()
        result = drive_sync_from_config(config).run()
        for item in result.changed:
            logger.info("Changed item: %s (%s)", item.name, item.parent_path)
        for item in result.deleted:
            logger.info("Deleted item: %s", item.id)
        logger.info(
            "Sync complete: %d changed, %d deleted, full resync: %s",
            len(result.changed),
            len(result.deleted),
            result.full_resync,
        )

    except Exception:
        logger.exception("Timer trigger failed")
        raise
