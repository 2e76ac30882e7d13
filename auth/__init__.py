"""
auth — User account module.

Provides:
  • Password hashing (bcrypt)
  • Server-side sessions with signed cookies
  • Register / Login / Logout API routes
  • ``get_auth_context`` FastAPI dependency
"""
