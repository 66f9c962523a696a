"""
Shared provider clients, configuration and models for the slide pipeline service.
"""

__version__ = "0.1.0"

# Convenience re-exports
from .models import *  # noqa: F401,F403
from .llm_client import get_text_generator  # noqa: F401
from .image_client import get_image_generator, placeholder_image  # noqa: F401
