"""
SportsTraining - a backend for the Visual Coaching training-program service.

This package contains the complete application:
- core: Framework-agnostic session logic (store, URL normalization, use cases)
- infrastructure: External service integrations (Visual Coaching API, preferences)
- api: FastAPI routes and dependencies for the mobile front end
- config: Application configuration
"""

__version__ = "0.1.0"
