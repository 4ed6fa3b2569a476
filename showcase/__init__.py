"""showcase — a demo HTTP service wired over SQL, documents, cache and object storage."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("showcase")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development
