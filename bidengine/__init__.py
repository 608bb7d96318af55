"""Top-level package for the BidEngine backend."""

# Lazy so that importing a submodule does not build the application.

__all__ = ["create_app", "app"]


def __getattr__(name):
    """Import the application on first access rather than at package import."""
    if name == "app" or name == "create_app":
        from bidengine.app.main import app as _app, create_app as _create_app
        if name == "app":
            return _app
        return _create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
