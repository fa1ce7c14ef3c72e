"""
Campus Marketplace
A freelance marketplace where startups post projects and students apply.

Architecture:
- MongoDB: students, startups, projects (applicants embedded in projects)
- Cloudinary: uploaded resumes, profile pictures, logos
- JWT: access + refresh tokens
"""

__version__ = "1.0.0"
