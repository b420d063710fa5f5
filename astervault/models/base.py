"""Declarative base shared by every AsterVault table."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
