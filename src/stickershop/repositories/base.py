from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from stickershop.core.exceptions import DatabaseError
from stickershop.db import get_connection
import logging

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class SqlRepository:
    """
    Plain-SQL data access shared by the repositories.

    Every SQLAlchemy failure leaves here as a DatabaseError tagged with the
    kind of statement that failed; the SQL itself only goes to the log.
    """

    @contextmanager
    def _connection(self, operation: str) -> Iterator[Connection]:
        try:
            with get_connection() as conn:
                yield conn
        except IntegrityError as e:
            logger.error(f"{operation} violated a constraint: {e}")
            raise DatabaseError(f"Integrity violation: {e}", operation)
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}")
            raise DatabaseError(f"{operation} failed: {e}", operation)

    def fetch_all(self, query: str, params: Optional[Row] = None) -> List[Row]:
        with self._connection("SELECT") as conn:
            return [dict(row._mapping) for row in conn.execute(text(query), params or {})]

    def fetch_one(self, query: str, params: Optional[Row] = None) -> Optional[Row]:
        """First row of the result, or None"""
        with self._connection("SELECT") as conn:
            row = conn.execute(text(query), params or {}).first()
            return dict(row._mapping) if row else None

    def execute(self, command: str, params: Optional[Row] = None) -> int:
        """Run an UPDATE or DELETE and commit; returns the affected row count"""
        with self._connection("WRITE") as conn:
            result = conn.execute(text(command), params or {})
            conn.commit()
            return result.rowcount

    def insert_returning_ids(self, command: str, params_list: List[Row]) -> List[int]:
        """
        Insert several rows in one transaction

        Returns:
            Generated ids in input order; nothing is committed if any row fails
        """
        if not params_list:
            return []

        with self._connection("INSERT") as conn:
            ids = [int(conn.execute(text(command + " RETURNING id"), params).scalar()) for params in params_list]
            conn.commit()
            return ids
