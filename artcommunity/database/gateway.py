"""
Persistence gateway
Thin wrapper over a SQLAlchemy session. Every statement that reaches the
database goes through ``query`` with bound parameters; driver failures are
logged with full detail and surfaced as ``StorageError``.
"""
from dataclasses import dataclass, field
from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Union
import logging
from artcommunity.database.connection import get_db
from artcommunity.errors import StorageError
logger = logging.getLogger(__name__)
@dataclass
class QueryResult:
    """Rows returned by a statement, as plain dictionaries"""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0
    def first(self) -> Optional[Dict[str, Any]]:
        return self.rows[0] if self.rows else None
    def scalar(self, default: Any = None) -> Any:
        """First column of the first row"""
        if not self.rows:
            return default
        value = next(iter(self.rows[0].values()), None)
        return default if value is None else value
def _collect(result) -> QueryResult:
    # ORM selects return a plain Result; only cursor results know about rowcount
    if getattr(result, "returns_rows", True):
        rows = [dict(row) for row in result.mappings()]
    else:
        rows = []
    return QueryResult(rows=rows, rowcount=getattr(result, "rowcount", len(rows)))
class PersistenceGateway:
    """Issues parameterized statements against the relational store"""
    def __init__(self, session: Session):
        self.session = session
    def query(self, statement: Union[str, Any], params: Optional[Dict[str, Any]] = None) -> QueryResult:
        """
        Execute a statement and collect its rows
        Args:
            statement: SQLAlchemy Core statement, or SQL text with named
                placeholders (``:name``)
            params: Values for the placeholders
        Returns:
            QueryResult with rows as dictionaries
        """
        if isinstance(statement, str):
            statement = text(statement)
        try:
            return _collect(self.session.execute(statement, params or {}))
        except SQLAlchemyError as e:
            self._fail("Query failed", e)
    def add(self, instance):
        """Insert an ORM instance and flush so its primary key is populated"""
        try:
            self.session.add(instance)
            self.session.flush()
            return instance
        except SQLAlchemyError as e:
            self._fail("Insert failed", e)
    def commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self._fail("Commit failed", e)
    def rollback(self):
        self.session.rollback()
    def _fail(self, what: str, exc: Exception):
        logger.error(f"{what}: {exc}")
        try:
            self.session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback failed: {rollback_error}")
        raise StorageError() from exc
def get_gateway(db: Session = Depends(get_db)) -> PersistenceGateway:
    """Dependency providing a gateway bound to the request session"""
    return PersistenceGateway(db)
