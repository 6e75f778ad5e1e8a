"""
InternHub
Backend for an internship marketplace.

Architecture:
- FastAPI: JSON API, one router per entity
- MongoDB: every entity (principals, catalog, applications, community content)
- SMTP + push relay: best-effort notifications
"""

__version__ = "1.0.0"
