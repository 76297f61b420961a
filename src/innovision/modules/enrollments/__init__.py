"""
Enrollments Module

Handles the public enrollment form and the admin review of applicants:
1. Enrollment submission (validation, age gate, persistence)
2. Confirmation document (PDF with QR code) generated on submission and on demand
3. Confirmation email with the document attached
4. Admin listing, statistics, detail and email resend

API Endpoints:
- POST /enrollments - Submit the enrollment form
- GET /enrollments/courses - Courses open to a given age
- GET /enrollments/{application_id}/document - Download the confirmation document
- GET /admin/applicants - List applicants (admin)
- GET /admin/applicants/stats - Dashboard statistics (admin)
- GET /admin/applicants/{id} - Applicant details (admin)
- POST /admin/applicants/{id}/resend-email - Resend the confirmation email (admin)

Applicant lifecycle: created -> documented -> notified. A record is kept
even when the document or email step fails.
"""

from .admin_router import router as admin_router
from .router import router

__all__ = ["router", "admin_router"]
