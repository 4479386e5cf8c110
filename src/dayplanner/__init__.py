"""dayplanner - schedule personal tasks around recurring protected time."""

__version__ = "0.1.0"
