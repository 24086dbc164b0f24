"""
Timesheet shared rules

Schemas, role-scoped visibility rules and preference normalization shared by
the store service and the session client.
"""

__version__ = "0.1.0"
