# crosswalk/vibe/__init__.py
"""
Vibe: an AI coding assistant that edits the app's source on a per-user branch.
"""
