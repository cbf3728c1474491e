__title__ = 'transitrouting'
__version__ = '1.0.0'
__author__ = 'Transit Routing Team'
__license__ = 'MIT'

__all__ = ['core_route_service', 'cost_functions', 'config', 'logger', 'exceptions']

# Set default logging handler to avoid "No handler found" warnings.
import logging
from logging import NullHandler

logging.getLogger(__name__).addHandler(NullHandler())
