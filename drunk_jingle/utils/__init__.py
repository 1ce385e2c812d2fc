"""
Utility modules for drunk-jingle.
"""

from .logger import setup_logger, set_log_level, LOGGER_NAME
from .xml_utils import local_name, namespace_of, elements_equal, element_lists_equal

__all__ = [
    'setup_logger',
    'set_log_level',
    'LOGGER_NAME',
    'local_name',
    'namespace_of',
    'elements_equal',
    'element_lists_equal',
]
