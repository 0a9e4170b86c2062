from logging.config import dictConfig
import os

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] - %(message)s'


def configure_logging(level: str = None):
    """Console logging for ``app.logger`` and the storefront module loggers.

    Only the ``storefront`` logger is configured; records still propagate so
    host-level handlers (gunicorn, pytest caplog) keep receiving them.
    """
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {'default': {'format': LOG_FORMAT}},
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'default',
            }
        },
        'loggers': {
            'storefront': {'level': level, 'handlers': ['console'], 'propagate': True},
        },
    })
    return level
