"""
stdlib logging setup (dictConfig).

Console output is coloured in development and JSON when LOG_FORMAT=json.
With LOG_DIR set, application records and the audit trail additionally go
to separate rotating JSON files.
"""

import logging.config
import os
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from app.config.settings import settings

# Extra attributes services attach to locate an inventory day or rule
CONTEXT_FIELDS = ("request_id", "actor", "hotel_id", "room_type_id", "date", "channel", "rule_id")

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_BACKUPS = 10


class InventoryJsonFormatter(jsonlogger.JsonFormatter):

    def add_fields(self, log_record: Dict[str, Any], record, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["environment"] = settings.ENVIRONMENT
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_record[key] = str(value)


def _rotating_json(filename: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": os.path.join(settings.LOG_DIR, filename),
        "maxBytes": ROTATE_BYTES,
        "backupCount": ROTATE_BACKUPS,
        "formatter": "json",
        "encoding": "utf8",
    }


def build_logging_config() -> Dict[str, Any]:
    if settings.LOG_FORMAT == "json":
        console_formatter = "json"
    elif settings.is_development():
        console_formatter = "colored"
    else:
        console_formatter = "plain"

    handlers: Dict[str, Any] = {
        "console": {"class": "logging.StreamHandler", "formatter": console_formatter},
    }
    app_handlers = ["console"]
    audit_handlers = ["console"]

    if settings.LOG_DIR:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        handlers["app_file"] = _rotating_json("inventory.json.log")
        handlers["audit_file"] = _rotating_json("audit.json.log")
        app_handlers.append("app_file")
        audit_handlers.append("audit_file")

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
            "json": {
                "()": InventoryJsonFormatter,
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "timestamp": True,
            },
            "colored": {
                "()": "colorlog.ColoredFormatter",
                "format": "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(name)s: %(message)s",
                "log_colors": {
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "red,bg_white",
                },
            },
        },
        "handlers": handlers,
        "loggers": {
            "app": {"handlers": app_handlers, "level": settings.LOG_LEVEL, "propagate": False},
            # Audit entries are always kept, whatever LOG_LEVEL says
            "app.audit": {"handlers": audit_handlers, "level": "INFO", "propagate": False},
            "sqlalchemy.engine": {
                "handlers": ["console"],
                "level": "INFO" if settings.DATABASE_ECHO else "WARNING",
                "propagate": False,
            },
        },
        "root": {"handlers": ["console"], "level": settings.LOG_LEVEL},
    }


def setup_logging() -> None:
    logging.config.dictConfig(build_logging_config())
