"""
Shared Kernel Module
====================

Shared infrastructure used by the response-time analytics context:
logging, request middleware and error handlers.

Architecture Pattern: Modular Monolith
- Each module (response_time) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add pairing or statistics logic to the shared kernel.
"""

__version__ = "1.0.0"
