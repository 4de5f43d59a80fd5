"""
Extract a normalized conversation from Cursor's locally persisted chat history.
"""

from .config import ExtractorConfig, get_config, load_config, update_config
from .domain.conversation_extractor import extract_conversation
from .domain.errors import ChatShareError, ExtractionEnvironmentError

__version__ = "0.1.0"

__all__ = [
    "ChatShareError",
    "ExtractionEnvironmentError",
    "ExtractorConfig",
    "extract_conversation",
    "get_config",
    "load_config",
    "update_config",
]
