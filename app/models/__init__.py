"""
App-store onboarding CRM: SQLAlchemy models.

The single ``db`` instance is shared by every model module and bound to the
Flask app inside ``create_app``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
