"""Append-only process milestone log."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alignfarm.db.base import Base, CreatedAtMixin


class ProcessStatusRow(Base, CreatedAtMixin):
    __tablename__ = "process_status"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    status: Mapped[str] = mapped_column(String(64), nullable=False)
