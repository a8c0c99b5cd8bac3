"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from alignfarm.db.models.job import MappingJobRow
from alignfarm.db.models.process_status import ProcessStatusRow
from alignfarm.db.models.derived import (
    DERIVED_TABLES,
    GoXrefRow,
    IdentityXrefRow,
    ObjectXrefRow,
)

__all__ = [
    "MappingJobRow",
    "ProcessStatusRow",
    "ObjectXrefRow",
    "IdentityXrefRow",
    "GoXrefRow",
    "DERIVED_TABLES",
]
