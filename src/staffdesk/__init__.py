"""StaffDesk — office staff profile service.

Login/logout with cookie-borne session tokens, profile retrieval and
profile updates, plus a real-time "profile updated" broadcast.
"""

__version__ = "0.1.0"
