"""
Persistence layer: database, models, repositories.
"""

from tresorier.infrastructure.persistence.database import Database
from tresorier.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork

__all__ = ["Database", "SqlAlchemyUnitOfWork"]
