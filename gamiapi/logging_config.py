import logging.config
import sys

SIMPLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s\n%(pathname)s:%(lineno)d\n%(message)s"
)


def _logger(level: str, *handlers: str) -> dict:
    return {"handlers": list(handlers), "level": level, "propagate": False}


def build_logging_config(log_level: str = "INFO", sql_echo: bool = False) -> dict:
    """stdout 에는 전체 로그, stderr 에는 WARNING 이상만 상세 포맷으로 출력"""
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": SIMPLE_FORMAT},
            "detailed": {"format": DETAILED_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "stream": sys.stdout,
            },
            "error_console": {
                "class": "logging.StreamHandler",
                "formatter": "detailed",
                "stream": sys.stderr,
                "level": "WARNING",
            },
        },
        "root": {"handlers": ["console", "error_console"], "level": level},
        "loggers": {
            "gamiapi": _logger(level, "console", "error_console"),
            "uvicorn.error": _logger(level, "console", "error_console"),
            "uvicorn.access": _logger(level, "console"),
            # 지급/교환 SQL 추적이 필요할 때만 DEBUG=true 로 켬
            "sqlalchemy.engine": _logger("INFO" if sql_echo else "WARNING", "console"),
        },
    }


def setup_logging(log_level: str = "INFO", sql_echo: bool = False) -> None:
    logging.config.dictConfig(build_logging_config(log_level, sql_echo))
