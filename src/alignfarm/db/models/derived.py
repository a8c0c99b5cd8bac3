"""Downstream tables populated from map files, keyed by object_xref_id.

Only the columns the orchestrator touches are modelled; the loader that
fills them owns the rest of the schema.
"""

from sqlalchemy import Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alignfarm.db.base import Base


class ObjectXrefRow(Base):
    __tablename__ = "object_xref"

    object_xref_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    ensembl_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ensembl_object_type: Mapped[str] = mapped_column(String(40), nullable=False)
    xref_id: Mapped[int] = mapped_column(Integer, nullable=False)


class IdentityXrefRow(Base):
    __tablename__ = "identity_xref"

    object_xref_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    query_identity: Mapped[float | None] = mapped_column(Float, nullable=True)
    target_identity: Mapped[float | None] = mapped_column(Float, nullable=True)


class GoXrefRow(Base):
    __tablename__ = "go_xref"

    object_xref_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    linkage_type: Mapped[str] = mapped_column(String(10), primary_key=True)


# Every table whose rows a mapping job may have written, in deletion order
DERIVED_TABLES = (IdentityXrefRow, GoXrefRow, ObjectXrefRow)
