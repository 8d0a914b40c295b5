import logging

from upi_tracker.config import LOG_LEVEL


def setup_logger() -> logging.Logger:
    """Configura o logger da aplicação (idempotente)."""
    logger = logging.getLogger("upi_tracker")
    logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    # Já configurado em outra importação
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(console_handler)

    return logger


logger = setup_logger()
