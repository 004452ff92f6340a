"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- visualcoaching: The vendor's HTTP API
- preferences: Persistent key/value storage

These wrappers translate between external formats and our domain models.
"""
