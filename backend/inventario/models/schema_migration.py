"""Ledger of applied schema migrations."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from inventario.models.base import Base


class SchemaMigration(Base):
    __tablename__ = "migrations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
