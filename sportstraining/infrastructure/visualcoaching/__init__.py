"""
Visual Coaching API client wrapper.

Implements the SessionClient protocol from core.sessions.service.
"""

from .client import (
    VisualCoachingClient,
    VisualCoachingConfig,
    create_visualcoaching_client,
)
from .diary import parse_diary_entry, parse_diary_template

__all__ = [
    "VisualCoachingClient",
    "VisualCoachingConfig",
    "create_visualcoaching_client",
    "parse_diary_entry",
    "parse_diary_template",
]
