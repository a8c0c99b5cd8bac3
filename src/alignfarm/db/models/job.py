"""Mapping job table: one row per farm array element."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alignfarm.db.base import Base, TimestampMixin


class MappingJobRow(Base, TimestampMixin):
    __tablename__ = "mapping_job"

    job_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    array_index: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    method: Mapped[str] = mapped_column(String(100), nullable=False)
    command_line: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    map_file: Mapped[str] = mapped_column(String(1024), nullable=False)
    out_file: Mapped[str] = mapped_column(String(1024), nullable=False)
    err_file: Mapped[str] = mapped_column(String(1024), nullable=False)
    root_dir: Mapped[str] = mapped_column(String(1024), nullable=False)
    range_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    range_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
