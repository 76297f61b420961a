"""
Administrators Module

Administrator accounts and session authentication for the admin dashboard.

API Endpoints:
- POST /admin/auth/login - Exchange credentials for a session token
- POST /admin/auth/logout - Revoke the current session
- GET /admin/auth/me - The authenticated administrator

Security Features:
- bcrypt password hashing (plain passwords never stored)
- Identical error for unknown email, wrong password and inactive account
- Failed-login throttling per client (3 failures: 5 min, 5 failures: 15 min)
- Session tokens revocable on logout
"""

from .router import router

__all__ = ["router"]
