"""Result cache: durable per-dependency metadata store."""

from cvecheq.cache.store import ResultCache

__all__ = ["ResultCache"]
