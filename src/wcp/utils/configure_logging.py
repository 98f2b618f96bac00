import logging
import sys
from tqdm import tqdm

from wcp.managers.config_manager import config_manager


class LogWithTqdm(logging.Handler):
    """
    A custom logging handler that redirects logging output to `tqdm.write()`,
    so log lines from a host application's progress bars stay readable.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _level(value, fallback):
    return getattr(logging, value.upper(), fallback) if isinstance(value, str) else value


def configure_logger(general_level='INFO', module_specific_levels=None, silenced_loggers=None):
    """
    Configures the root logger and specific module loggers with a
    TQDM-friendly handler.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_level(level, logging.INFO))

    # Muzzle noisy loggers
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_level(level, logging.CRITICAL))


def configure_from_config():
    """Applies the 'logging' section of settings.json."""
    configure_logger(
        general_level=config_manager.get_nested("logging.level", "WARNING"),
        module_specific_levels=config_manager.get_nested("logging.module_levels", {}),
        silenced_loggers=config_manager.get_nested("logging.silenced_loggers", {}),
    )
