"""
API Routers

- health: Liveness and database readiness checks
- study: Study sessions and due reviews
"""

from lingua.routers import health, study

__all__ = ["health", "study"]
