import logging


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Names accepted by both logging and uvicorn
LEVELS = ("critical", "error", "warning", "info", "debug")


def resolve_level(level: str | None) -> str:
    name = (level or "").strip().lower()
    return name if name in LEVELS else "info"


def setup_logging(level: str | None = "info") -> str:
    """Configure root logging once for the process.

    Unknown level names fall back to INFO. Returns the lowercase level name
    actually used, suitable for passing on to uvicorn.
    """
    name = resolve_level(level)
    numeric = getattr(logging, name.upper())
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logging.getLogger("jamroom").setLevel(numeric)
    return name
