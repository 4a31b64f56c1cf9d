"""
Terminal front end: service container, presenters and rich output.
"""

from .dependencies import ServiceContainer, get_container, reset_container

__all__ = ["ServiceContainer", "get_container", "reset_container"]
