"""Logging estructurado en JSON para el relay de SMS."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

# Atributos propios de LogRecord; todo lo demás llega vía `extra`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Serializa cada registro como un objeto JSON en una sola línea."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRS
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: int = logging.INFO, *, log_file: str | None = None) -> None:
    """Instala el formatter JSON en el logger raíz y, opcionalmente, un archivo rotativo."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    if not log_file:
        return
    try:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    except OSError:
        root_logger.exception(
            "No fue posible iniciar el handler de archivo", extra={"log_file": log_file}
        )
        return
    file_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(file_handler)


def resolve_log_level(value: str | int | None, *, default: int = logging.INFO) -> int:
    """Convierte `"debug"`, `"20"` o `20` en la constante numérica de logging."""
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    candidate = value.strip()
    if candidate.isdigit():
        return int(candidate)
    mapped = logging.getLevelNamesMapping().get(candidate.upper())
    return mapped if mapped is not None else default


def get_logger(name: str) -> logging.Logger:
    """Retorna un logger hijo con el nombre solicitado."""
    return logging.getLogger(name)


def log_event(logger: logging.Logger, message: str, **extra: Any) -> None:
    """Helper para enviar eventos con campos adicionales en formato JSON."""
    if extra:
        logger.info(message, extra=extra)
    else:
        logger.info(message)


def mask_secret(value: str | None) -> str | None:
    """Deja visibles sólo los extremos de una credencial antes de loguearla."""
    if not value:
        return value
    return "***" if len(value) <= 4 else f"{value[:2]}***{value[-2:]}"
