"""
Declarative base for all ORM models.

Import models through this module's consumers (session.init_db) so their
tables are registered on Base.metadata before create_all runs.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
