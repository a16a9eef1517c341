# Smart Doc package init
import logging
import os

# Extra fields attached to smartdoc.llm events (see services/genai_client.py)
_LLM_EVENT_FIELDS = ("operation", "provider", "model", "turns", "err")


class _EventFormatter(logging.Formatter):
    """Prefix records and append ``key=value`` pairs for known event fields."""

    def __init__(self) -> None:
        super().__init__("[SMARTDOC][%(levelname)s][%(name)s] %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = [f"{k}={getattr(record, k)}" for k in _LLM_EVENT_FIELDS if getattr(record, k, None) is not None]
        return f"{line} {' '.join(pairs)}" if pairs else line


def _env_level(var: str, default: int) -> int:
    name = (os.getenv(var) or "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def _configure_logging() -> None:
    base = logging.getLogger("smartdoc")
    if not base.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(_EventFormatter())
        base.addHandler(handler)
    level = _env_level("SMARTDOC_LOG_LEVEL", logging.INFO)
    base.setLevel(level)
    # smartdoc.llm inherits the package level unless set on its own
    logging.getLogger("smartdoc.llm").setLevel(_env_level("SMARTDOC_LLM_LOG_LEVEL", level))


_configure_logging()
