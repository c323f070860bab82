"""Rich-handler logging preset."""
import logging
from rich.logging import RichHandler
from .app_config import settings

def configure(level: str | None = None):
    logging.basicConfig(
        level=getattr(logging, level or settings.LOG_LEVEL),
        format="%(asctime)s │ %(name)-28s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )
    # paho is chatty at DEBUG
    logging.getLogger("MqttBusClient").setLevel(max(logging.getLogger().level, logging.INFO))
