import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s %(levelname)-8s [%(name)s:%(module)s:%(lineno)d] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_NOISY_LIBRARY_LOGGERS = ["httpx", "httpcore", "hpack", "uvicorn.access", "watchfiles"]

_console_handler: Optional[logging.Handler] = None


def setup_logging(level_name: str = "INFO") -> None:
    """
    配置根日志记录器：控制台输出 + 降低第三方库的日志级别。
    重复调用只会调整级别，不会重复添加 handler。
    """
    global _console_handler

    numeric_level = getattr(logging, (level_name or "INFO").upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    if _console_handler is None:
        _console_handler = logging.StreamHandler()
        _console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root_logger.addHandler(_console_handler)

    for lib_logger_name in _NOISY_LIBRARY_LOGGERS:
        logging.getLogger(lib_logger_name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)


def mask_api_key(api_key: Optional[str]) -> str:
    if not api_key:
        return "(empty)"
    head = api_key[:4]
    tail = api_key[-4:] if len(api_key) > 8 else "****"
    return f"{head}...{tail} (len={len(api_key)})"
