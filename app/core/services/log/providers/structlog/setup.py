import logging.config
from pathlib import Path

import structlog

from app.core.configs import app_config

# Project root is where pyproject.toml lives
PROJECT_ROOT = Path(__file__).resolve()
while PROJECT_ROOT.parent != PROJECT_ROOT:
    if (PROJECT_ROOT / 'pyproject.toml').exists():
        break
    PROJECT_ROOT = PROJECT_ROOT.parent

LOG_DIR = app_config.LOG_DIR or PROJECT_ROOT / 'logs'

# Create logs directory only if file logging is enabled
if 'file' in app_config.LOG_HANDLERS:
    LOG_DIR.mkdir(parents=True, exist_ok=True)

# 'file' fans out to the combined log and the error-only log
_handler_names: list[str] = []
for _name in app_config.LOG_HANDLERS:
    _handler_names.extend(['combined_file', 'error_file'] if _name == 'file' else [_name])

_shared_processors = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.CallsiteParameterAdder(
        [
            structlog.processors.CallsiteParameter.FILENAME,
            structlog.processors.CallsiteParameter.LINENO,
            structlog.processors.CallsiteParameter.FUNC_NAME,
        ]
    ),
    structlog.processors.TimeStamper(fmt='%Y-%m-%d %H:%M:%S'),
    structlog.processors.StackInfoRenderer(),
]

logging.config.dictConfig(
    {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'plain': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processors': [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.dev.ConsoleRenderer(colors=False),
                ],
                'foreign_pre_chain': _shared_processors,
            },
            'json': {
                '()': structlog.stdlib.ProcessorFormatter,
                'processors': [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ],
                'foreign_pre_chain': _shared_processors,
            },
        },
        'handlers': {
            'stream': {
                'formatter': 'plain',
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stderr',
            },
            'combined_file': {
                'formatter': 'json',
                'class': 'logging.FileHandler',
                'filename': str(LOG_DIR / 'combined.log'),
                'mode': 'a',
                'delay': True,
            },
            'error_file': {
                'formatter': 'json',
                'class': 'logging.FileHandler',
                'filename': str(LOG_DIR / 'error.log'),
                'mode': 'a',
                'delay': True,
                'level': 'ERROR',
            },
        },
        'loggers': {
            'app': {'handlers': _handler_names, 'level': app_config.LOG_LEVEL, 'propagate': False},
            'uvicorn': {'handlers': _handler_names, 'level': app_config.LOG_LEVEL, 'propagate': False},
        },
    }
)

structlog.configure(
    processors=[
        *_shared_processors,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('app')
