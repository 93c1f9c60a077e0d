"""
Configuracion de sinks de loguru para el job.
"""
import sys

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


def configure_logging(level: str = "INFO", log_file: str = "") -> None:
    """
    Reemplaza el sink por defecto por uno en stderr con formato compacto.
    Si log_file esta configurado, agrega ademas un sink a archivo con rotacion.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT)

    if log_file:
        logger.add(
            log_file,
            rotation="500 MB",
            retention="10 days",
            level=level.upper(),
        )
