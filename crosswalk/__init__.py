# FILE: crosswalk/__init__.py
"""
Crosswalk backend.

Location-pinned drops with distance-gated reading, plus "Vibe": an AI coding
assistant that edits the app's own source on a per-user branch.
"""

__version__ = "0.4.0"
