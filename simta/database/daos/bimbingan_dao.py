"""
Bimbingan DAO

Purpose
-------
Data-access layer for the `Bimbingan` ORM entity. Provides:
- Submission creation (flushed immediately so constraint violations surface
  inside the caller's transaction)
- Lookup by id, scoped listing with pagination, counts
- The gating queries of the workflow: pending check and highest version
- The review write as a single conditional UPDATE (compare-and-swap on
  ``status = 'menunggu'``)

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Keeps business rules (authorization, status machine) in the service layer.
- Methods log and re-raise. `IntegrityError` from `createBimbingan` is left for
  the service layer to translate into a conflict.

Usage
-----
.. code-block:: python

    dao = BimbinganDao()
    with SessionFactory() as session:
        if not dao.hasPendingBimbingan(session, student_id, advisor_id):
            version = dao.fetchMaxVersion(session, student_id, advisor_id) + 1
            ...
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import asc, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, Query

from simta.database.entities.bimbingan import Bimbingan
from simta.workflow.status import SubmissionStatus

logger = logging.getLogger(__name__)


class BimbinganDao:
    """
    Data Access Object (DAO) for mentoring submissions.
    """

    def createBimbingan(self, session: Session, bimbingan: Bimbingan) -> Bimbingan:
        """
        Add and flush a new submission.

        Raises
        ------
        sqlalchemy.exc.IntegrityError
            When the pair already has a pending submission or the version
            number is taken (a concurrent submission won the race).
        """
        try:
            session.add(bimbingan)
            session.flush()
            return bimbingan
        except IntegrityError:
            logger.warning(
                "Constraint violation in BimbinganDao.createBimbingan (mahasiswa_id=%s, dosen_id=%s)",
                bimbingan.mahasiswa_id,
                bimbingan.dosen_id,
            )
            raise
        except Exception:
            logger.exception("Error in BimbinganDao.createBimbingan (mahasiswa_id=%s)", bimbingan.mahasiswa_id)
            raise

    def fetchBimbinganById(self, session: Session, bimbingan_id: UUID) -> Bimbingan | None:
        try:
            return session.get(Bimbingan, bimbingan_id)
        except Exception:
            logger.exception("Error in BimbinganDao.fetchBimbinganById (id=%s)", bimbingan_id)
            raise

    def hasPendingBimbingan(self, session: Session, mahasiswa_id: UUID, dosen_id: UUID) -> bool:
        """
        True if the (student, advisor) pair has a submission awaiting review.
        """
        try:
            pending = (
                session.query(Bimbingan.id)
                .filter(
                    Bimbingan.mahasiswa_id == mahasiswa_id,
                    Bimbingan.dosen_id == dosen_id,
                    Bimbingan.status == SubmissionStatus.MENUNGGU.value,
                )
                .first()
            )
            return pending is not None
        except Exception:
            logger.exception("Error in BimbinganDao.hasPendingBimbingan (mahasiswa_id=%s)", mahasiswa_id)
            raise

    def fetchMaxVersion(self, session: Session, mahasiswa_id: UUID, dosen_id: UUID) -> int:
        """
        Highest version number used by the pair, 0 when there is none.
        """
        try:
            highest = (
                session.query(func.max(Bimbingan.version_number))
                .filter(
                    Bimbingan.mahasiswa_id == mahasiswa_id,
                    Bimbingan.dosen_id == dosen_id,
                )
                .scalar()
            )
            return highest or 0
        except Exception:
            logger.exception("Error in BimbinganDao.fetchMaxVersion (mahasiswa_id=%s)", mahasiswa_id)
            raise

    def _scopedQuery(
        self,
        session: Session,
        mahasiswa_id: UUID | None = None,
        dosen_id: UUID | None = None,
        dosen_type: str | None = None,
        status: str | None = None,
    ) -> Query:
        query = session.query(Bimbingan)
        if mahasiswa_id is not None:
            query = query.filter(Bimbingan.mahasiswa_id == mahasiswa_id)
        if dosen_id is not None:
            query = query.filter(Bimbingan.dosen_id == dosen_id)
        if dosen_type is not None:
            query = query.filter(Bimbingan.dosen_type == dosen_type)
        if status is not None:
            query = query.filter(Bimbingan.status == status)
        return query

    def fetchBimbingan(
        self,
        session: Session,
        mahasiswa_id: UUID | None = None,
        dosen_id: UUID | None = None,
        dosen_type: str | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> list[Bimbingan]:
        """
        Submissions matching every given filter, newest first.

        A filter left as None is not applied; callers are responsible for
        passing the role scope.
        """
        try:
            query = (
                self._scopedQuery(session, mahasiswa_id, dosen_id, dosen_type, status)
                .order_by(desc(Bimbingan.created_at))
                .offset(offset)
            )
            if limit is not None:
                query = query.limit(limit)
            return query.all()
        except Exception:
            logger.exception("Error in BimbinganDao.fetchBimbingan")
            raise

    def countBimbingan(
        self,
        session: Session,
        mahasiswa_id: UUID | None = None,
        dosen_id: UUID | None = None,
        dosen_type: str | None = None,
        status: str | None = None,
    ) -> int:
        try:
            return self._scopedQuery(session, mahasiswa_id, dosen_id, dosen_type, status).count()
        except Exception:
            logger.exception("Error in BimbinganDao.countBimbingan")
            raise

    def countPendingByAdvisor(self, session: Session, dosen_id: UUID) -> int:
        """
        Number of submissions awaiting review by ``dosen_id``.
        """
        return self.countBimbingan(session, dosen_id=dosen_id, status=SubmissionStatus.MENUNGGU.value)

    def fetchPendingReviews(self, session: Session, dosen_id: UUID) -> list[Bimbingan]:
        """
        Submissions awaiting review by ``dosen_id``, oldest first.
        """
        try:
            return (
                self._scopedQuery(session, dosen_id=dosen_id, status=SubmissionStatus.MENUNGGU.value)
                .order_by(asc(Bimbingan.created_at))
                .all()
            )
        except Exception:
            logger.exception("Error in BimbinganDao.fetchPendingReviews (dosen_id=%s)", dosen_id)
            raise

    def applyFeedback(
        self,
        session: Session,
        bimbingan_id: UUID,
        status: str,
        feedback: str | None,
        feedback_date: datetime,
        feedback_file: str | None = None,
        feedback_file_name: str | None = None,
    ) -> bool:
        """
        Record a review in one conditional UPDATE.

        The row is only updated while it is still ``menunggu``; status,
        feedback, feedback document and timestamp change together.

        Returns
        -------
        bool
            False when no row matched, i.e. the submission was reviewed in the
            meantime.
        """
        try:
            updated = (
                session.query(Bimbingan)
                .filter(
                    Bimbingan.id == bimbingan_id,
                    Bimbingan.status == SubmissionStatus.MENUNGGU.value,
                )
                .update(
                    {
                        Bimbingan.status: status,
                        Bimbingan.feedback: feedback,
                        Bimbingan.feedback_date: feedback_date,
                        Bimbingan.feedback_file: feedback_file,
                        Bimbingan.feedback_file_name: feedback_file_name,
                        Bimbingan.updated_at: feedback_date,
                    },
                    synchronize_session="fetch",
                )
            )
            return updated == 1
        except Exception:
            logger.exception("Error in BimbinganDao.applyFeedback (id=%s)", bimbingan_id)
            raise
