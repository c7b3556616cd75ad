"""
Actionflow Processors

Destinations for extracted action items.
"""

from .base import BaseProcessor, ProcessorConfig
from .factory import PROVIDER_KINDS, ProcessorFactory
from .internal import InternalProcessor
from .monday import MondayProcessor
from .slack import SlackProcessor

__all__ = [
    "BaseProcessor",
    "ProcessorConfig",
    "PROVIDER_KINDS",
    "ProcessorFactory",
    "InternalProcessor",
    "MondayProcessor",
    "SlackProcessor",
]
