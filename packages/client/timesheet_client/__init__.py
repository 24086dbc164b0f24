"""
Timesheet session client

Resolves the signed-in profile, keeps appearance preferences reconciled
between the store, a local cache and the display, and drives the people and
projects workspaces against the timesheet store.
"""

__version__ = "0.1.0"
