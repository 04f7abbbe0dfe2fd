"""
Projectify
Project application tracking: admins post projects, users apply,
admins approve or reject both.

Architecture:
- MongoDB: users, projects, applications
- FastAPI: REST API with JWT bearer auth
- SMTP: best-effort notification emails on approval decisions
"""

__version__ = "1.0.0"
