"""founderdesk - session, task lifecycle and contact notes core for a startup operations console."""

__all__ = ["Console", "Settings"]
__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy imports - keep httpx/aiosqlite out of plain model imports."""
    if name == "Console":
        from founderdesk.console import Console

        return Console
    if name == "Settings":
        from founderdesk.settings import Settings

        return Settings
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
