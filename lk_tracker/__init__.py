"""Interactive Lucas-Kanade tracking of user-placed points."""

__version__ = "0.1.0"
