"""
Transaction management for assignment writes.

Every mutating operation runs inside ``TransactionManager.employee_transaction``:
the employee's in-process lock is taken first, then a session is opened as a
database writer (BEGIN IMMEDIATE on SQLite, a bounded lock_timeout on
PostgreSQL) and the employee row is locked with SELECT ... FOR UPDATE. The
validation read and the write that follows are thereby serialized per employee,
across processes too, and the whole unit commits or rolls back as one.
"""

from __future__ import annotations

import threading
import time
import weakref
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from staffing.errors import Conflict, ReferenceNotFound, Transient

from .db import begin_write_transaction
from .repositories import DatabaseManager, EmployeeRepository


class EmployeeLocks:
    """
    Registry of one lock per employee id.

    Entries are weak: a lock lives only while someone holds or waits on it,
    so the registry does not grow with every employee id ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def get(self, employee_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(employee_id)
            if lock is None:
                lock = self._locks[employee_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, employee_ids: Iterable[int], timeout: float) -> Iterator[None]:
        """
        Acquire the locks of all given employees.

        Locks are taken in ascending id order so two callers locking the same
        pair cannot deadlock.

        Raises:
            Transient: If a lock is not acquired within ``timeout`` seconds
        """
        acquired: List[threading.Lock] = []
        try:
            for employee_id in sorted(set(employee_ids)):
                lock = self.get(employee_id)
                if not lock.acquire(timeout=max(timeout, 0.0)):
                    raise Transient(
                        f"Timed out waiting for workload lock of employee {employee_id}",
                        {"employee_id": employee_id, "timeout_seconds": timeout},
                    )
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


def _translate_integrity_error(error: IntegrityError) -> Exception:
    text = str(error.orig).lower()
    if "foreign key" in text:
        return ReferenceNotFound("record", str(error.orig))
    return Conflict(f"Integrity violation: {error.orig}")


class TransactionManager:
    """
    Opens sessions with commit/rollback semantics and per-employee serialization.

    Usage:
        with tm.employee_transaction(employee_id) as session:
            ...  # reads and writes; commits on success, rolls back on error
    """

    def __init__(
        self,
        db: DatabaseManager,
        lock_timeout: float = 10.0,
        operation_timeout: float = 30.0,
        locks: Optional[EmployeeLocks] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            db: Database manager providing the session factory
            lock_timeout: Seconds to wait for an employee lock
            operation_timeout: Seconds an entire write may take before it is rolled back
            locks: Shared lock registry (one per process)
            clock: Monotonic clock, injectable for tests
        """
        self.db = db
        self.lock_timeout = lock_timeout
        self.operation_timeout = operation_timeout
        self.locks = locks or EmployeeLocks()
        self._clock = clock

    @contextmanager
    def read_only(self) -> Iterator[Session]:
        """Session for reads; whatever happens inside is rolled back."""
        session = self.db.get_session()
        try:
            yield session
        except OperationalError as e:
            raise Transient(f"Database unavailable: {e.orig}") from e
        finally:
            session.rollback()
            session.close()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Plain transactional scope without employee locking."""
        session = self.db.get_session()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise _translate_integrity_error(e) from e
        except OperationalError as e:
            session.rollback()
            raise Transient(f"Database unavailable: {e.orig}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def employee_transaction(self, *employee_ids: int) -> Iterator[Session]:
        """
        Transactional scope serialized against other writers of the same employees.

        Raises:
            Transient: On lock or operation timeout, or lost database connection.
                The transaction has been rolled back when this is raised.
        """
        deadline = self._clock() + self.operation_timeout
        lock_wait = min(self.lock_timeout, deadline - self._clock())

        with self.locks.hold(employee_ids, lock_wait):
            session = self.db.get_session()
            try:
                begin_write_transaction(session, max(min(self.lock_timeout, deadline - self._clock()), 0.0))
                for employee_id in sorted(set(employee_ids)):
                    EmployeeRepository.get_for_update(session, employee_id)
                yield session
                if self._clock() > deadline:
                    raise Transient(
                        f"Operation exceeded {self.operation_timeout}s and was rolled back",
                        {"employee_ids": sorted(set(employee_ids))},
                    )
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise _translate_integrity_error(e) from e
            except OperationalError as e:
                session.rollback()
                raise Transient(f"Database unavailable: {e.orig}") from e
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()
