"""
Logging Configuration for Metrics Core
Console logging for the aggregation and export pipeline
"""

import logging
import logging.config
import sys
from typing import Optional

from .config import get_settings

def setup_logging(level: Optional[str] = None):
    """Setup logging configuration for metrics_core consumers"""
    
    level = (level or get_settings().log_level).upper()
    
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'detailed': {
                'format': '[%(asctime)s] %(levelname)s [%(name)s:%(lineno)d] %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'simple': {
                'format': '%(levelname)s %(message)s'
            }
        },
        'handlers': {
            'console': {
                'level': level,
                'class': 'logging.StreamHandler',
                'formatter': 'detailed',
                'stream': sys.stdout
            }
        },
        'loggers': {
            'metrics_core': {
                'level': level,
                'handlers': ['console'],
                'propagate': False
            }
        }
    }
    
    logging.config.dictConfig(config)
    
    # Transport libraries are noisy at DEBUG
    logging.getLogger('grpc').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    
    logger = logging.getLogger(__name__)
    logger.info(f"Metrics core logging initialized - Level: {level}")
