"""
Academy Backend: API Routes Package
====================================

Route inventory:
    health.py   GET  /health
    public.py   GET  /api/coaches, /api/coaches/{id}, /api/events, /api/gallery
    forms.py    POST /api/join, /api/contact
    auth.py     POST /api/auth/sign-in, sign-up, sign-out, reset-password,
                     update-password; GET /api/auth/me
    views.py    GET  /auth, /access-denied
    admin.py    /api/admin/*  (guarded: admin role required)

Handlers stay thin: parse the request, call an adapter or the session
manager, and `unwrap` the result. Failures become exceptions that the
handlers in `academy.main` render.
"""
