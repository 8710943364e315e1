# crosswalk/notifications/__init__.py
"""In-app notifications (currently: someone high-fived your drop)."""
