"""
Workify Job Portal
Backend for a job portal where students apply to jobs posted by recruiters.

Architecture:
- MongoDB: users (credentials, session state, profile), companies, jobs, applications
- JWT: short-lived access tokens, single-use rotating refresh tokens
- SMTP: password reset emails
"""

__version__ = "1.0.0"
