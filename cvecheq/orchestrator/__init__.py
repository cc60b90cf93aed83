"""Batch orchestrator: sequential, rate-limited resolution of a dependency set."""

from cvecheq.orchestrator.runner import BatchOrchestrator, unique_names
from cvecheq.orchestrator.throttle import RateLimiter

__all__ = ["BatchOrchestrator", "RateLimiter", "unique_names"]
