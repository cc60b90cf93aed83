"""cvecheq: resolve registry metadata and advisories for declared dependencies."""

__version__ = "0.1.0"
