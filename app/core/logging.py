import logging
import sys

from app.core.config import get_settings


_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    resolved = (level or get_settings().log_level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(resolved)
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    # httpx logs every request at INFO; the provider client already does.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True


def mask_phone(phone_number: str | None) -> str:
    text = str(phone_number or "")
    if len(text) <= 4:
        return "****"
    return f"{'*' * (len(text) - 4)}{text[-4:]}"
