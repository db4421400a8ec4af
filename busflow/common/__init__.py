from .exceptions import BusflowError, InvalidInputError, ConfigurationError
from .logging import setup_logger, log_execution_time
from .utils import round_half_up

__all__ = [
    'BusflowError',
    'InvalidInputError',
    'ConfigurationError',
    'setup_logger',
    'log_execution_time',
    'round_half_up'
]
