"""View module: display state derived for the map and list."""

from .coordinator import CenterOnUser, RouteOverlay, ViewCoordinator, ViewState

__all__ = ["ViewCoordinator", "ViewState", "RouteOverlay", "CenterOnUser"]
