import logging
import os
import sys
import traceback

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Add the src directory to Python path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, "src")
sys.path.insert(0, src_path)


if __name__ == "__main__":
    try:
        from visitflow.core.config import get_settings

        settings = get_settings()
    except ValueError as ve:
        logger.error(f"Configuration validation failed: {ve}")
        logger.error(traceback.format_exc())
        logger.error("Check OPENMRS_BASE_URL, VISIT_FORM_VISIT_ATTRIBUTE_TYPES (JSON list) and LOG_LEVEL")
        sys.exit(1)

    port = int(os.environ.get("PORT", settings.port))
    host = os.environ.get("HOST", settings.host)
    logger.info(f"Starting {settings.app_name} v{settings.app_version} on {host}:{port}")
    logger.info(f"  OPENMRS_BASE_URL: {settings.openmrs.base_url}")
    logger.info(f"  Queue admission: {'on' if settings.visit_form.show_service_queue_fields else 'off'}")

    uvicorn.run(
        "visitflow.app:app",
        host=host,
        port=port,
        workers=1,
        log_level=settings.logging.level.lower(),
    )
