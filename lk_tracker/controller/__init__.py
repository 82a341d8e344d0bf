from .app_controller import TrackerController

__all__ = ["TrackerController"]
