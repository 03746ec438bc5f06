from __future__ import annotations

import logging

import structlog

from .config import settings


_PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def build_json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Formatter JSON a una riga per i record del logging standard (campi extra inclusi)."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.ExtraAdder(),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )


def configure_logging(level: str | None = None, *, structured: bool | None = None) -> None:
    """Configura il root logger secondo le impostazioni correnti."""
    use_json = settings.structured_logging if structured is None else structured
    handler = logging.StreamHandler()
    handler.setFormatter(build_json_formatter() if use_json else logging.Formatter(_PLAIN_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
