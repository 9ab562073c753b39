import logging
import logging.config
from pathlib import Path
from typing import Optional

# third-party loggers that are too chatty at DEBUG
QUIET_LOGGERS = ("pymongo", "apscheduler", "httpx")

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the API process.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional rotating log file path (production only)
    """
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': {
            'console': {
                'level': log_level,
                'class': 'logging.StreamHandler',
                'formatter': 'standard',
                'stream': 'ext://sys.stdout'
            }
        },
        'loggers': {
            '': {
                'handlers': ['console'],
                'level': log_level,
                'propagate': False
            },
            'uvicorn': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False
            },
            'uvicorn.access': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False
            },
        }
    }

    for name in QUIET_LOGGERS:
        config['loggers'][name] = {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False
        }

    if log_file:
        config['handlers']['file'] = {
            'level': log_level,
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'detailed',
            'filename': log_file,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'encoding': 'utf-8'
        }
        for logger_name in config['loggers']:
            config['loggers'][logger_name]['handlers'].append('file')

    logging.config.dictConfig(config)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured with level: {log_level}")
    if log_file:
        logger.info(f"Log file: {log_file}")
