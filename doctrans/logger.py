import logging
from pathlib import Path

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE = LOG_DIR / "app.log"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Above CRITICAL: nothing gets through
LEVEL_OFF = logging.CRITICAL + 1

MODE_LEVELS = {
    'off': LEVEL_OFF,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

_cached_mode = None


def _get_log_mode() -> str:
    """Read ``log_mode`` from the configuration once; 'off' if it cannot be read."""
    global _cached_mode
    if _cached_mode is None:
        try:
            from doctrans.config import load_config
            mode = load_config().get('log_mode', 'off')
        except Exception:
            # Logging must never stop the program from starting
            return 'off'
        _cached_mode = mode if mode in MODE_LEVELS else 'info'
        # Loggers created while the configuration was still importing fell back to 'off'
        _reconfigure_all(_cached_mode)
    return _cached_mode


def _is_file_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.FileHandler)


def _new_file_handler() -> logging.FileHandler:
    LOG_DIR.mkdir(exist_ok=True)
    handler = logging.FileHandler(LOG_FILE, encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _new_console_handler(level: int) -> logging.StreamHandler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _configure(logger: logging.Logger, mode: str) -> None:
    """Set level and handlers of ``logger`` for ``mode``; safe to call repeatedly."""
    level = MODE_LEVELS[mode]
    logger.setLevel(level)

    file_handlers = [h for h in logger.handlers if _is_file_handler(h)]
    consoles = [h for h in logger.handlers if not _is_file_handler(h)]

    if mode == 'off':
        for handler in file_handlers:
            handler.close()
            logger.removeHandler(handler)
    else:
        if not file_handlers:
            logger.addHandler(_new_file_handler())
        if not consoles:
            consoles.append(_new_console_handler(level))
            logger.addHandler(consoles[-1])

    for handler in consoles:
        handler.setLevel(level)


def clear_log_mode_cache():
    """Forget the cached mode and re-apply the configured one to every project logger."""
    global _cached_mode
    _cached_mode = None
    _get_log_mode()


def _reconfigure_all(mode: str) -> None:
    for name in list(logging.Logger.manager.loggerDict):
        if name.startswith('doctrans'):
            _configure(logging.getLogger(name), mode)


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    _configure(logger, _get_log_mode())
    return logger
