"""
Response-Time Interfaces Layer
==============================

Interface adapters (controllers) for response-time analytics.

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from src.response_time.interfaces.controllers import response_time_router

__all__ = ["response_time_router"]
