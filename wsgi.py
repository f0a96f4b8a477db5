"""
WSGI / Flask-Migrate entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade
    flask --app wsgi create-admin admin@example.com "Admin"
"""

from app import create_app

app = create_app()
