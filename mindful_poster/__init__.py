"""
Mindful Poster

MCP server that turns short prompts into calm, Instagram-ready wellness
posters through the Runware image API, with a local gallery and request log.
"""

__version__ = "0.1.0"

try:
    import importlib.metadata

    __version__ = importlib.metadata.version("mindful-poster")
except (importlib.metadata.PackageNotFoundError, ImportError):
    # Fallback for development mode
    pass

__all__ = ["__version__"]
