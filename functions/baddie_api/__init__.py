"""
Backend package for the Daily Baddie API.

This package provides a FastAPI application serving the profile catalog and
per-user favorites, with Firebase token verification and push notifications.
"""
