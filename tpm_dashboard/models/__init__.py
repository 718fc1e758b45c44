"""
TPM Dashboard
SQLAlchemy extension instance shared by all model modules.

Model modules import ``db`` from here; the application factory binds it
with ``db.init_app(app)``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
