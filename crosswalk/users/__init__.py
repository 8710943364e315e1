# crosswalk/users/__init__.py
"""User accounts (created on first Apple sign-in)."""
