"""
User DAO

Purpose
-------
Thin data-access layer over the `User` directory record. The bimbingan
workflow only needs three things from the directory:

- identity lookup for display population
- the advisor assigned to one of a student's two slots
- advancing a student's progress marker one step

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller.
- Business rules (authorization, state checks) live in the service layer.
- Methods log and re-raise; the service layer decides the error policy.

Usage
-----
.. code-block:: python

    from simta.database.config.connection_engine import SessionFactory
    from simta.database.daos.user_dao import UserDao

    dao = UserDao()
    with SessionFactory() as session:
        advisor_id = dao.fetchAdvisorAssignment(session, student_id, "dospem_1")
        new_progress, changed = dao.advanceProgress(session, student_id)
        session.commit()
"""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from simta.database.entities.user import User
from simta.workflow.principal import AdvisorSlot
from simta.workflow.progress import next_progress

logger = logging.getLogger(__name__)


class UserDao:
    """
    Data Access Object for `User` directory records.
    """

    def createUser(self, session: Session, user: User) -> User:
        """
        Add a new `User` to the session.

        Used by seeding scripts and tests; directory CRUD proper lives in the
        directory service.
        """
        try:
            session.add(user)
            return user
        except Exception:
            logger.exception("Error in UserDao.createUser (nim_nip=%s)", user.nim_nip)
            raise

    def fetchUserById(self, session: Session, user_id: UUID) -> User | None:
        """
        Return the `User` with the given id, or None.
        """
        try:
            return session.get(User, user_id)
        except Exception:
            logger.exception("Error in UserDao.fetchUserById (id=%s)", user_id)
            raise

    def fetchAdvisorAssignment(self, session: Session, student_id: UUID, slot: AdvisorSlot) -> UUID | None:
        """
        Return the advisor id assigned to ``slot`` for a student.

        Returns
        -------
        UUID | None
            None when the student does not exist or the slot is empty.
        """
        try:
            student = session.get(User, student_id)
            if student is None:
                return None
            if AdvisorSlot(slot) is AdvisorSlot.DOSPEM_1:
                return student.dospem_1_id
            return student.dospem_2_id
        except Exception:
            logger.exception("Error in UserDao.fetchAdvisorAssignment (student_id=%s, slot=%s)", student_id, slot)
            raise

    def advanceProgress(self, session: Session, student_id: UUID) -> tuple[str, bool] | None:
        """
        Move a student's progress marker one step forward.

        The row is locked (``SELECT ... FOR UPDATE`` where supported) so two
        concurrent advances cannot both read the same starting marker.

        Returns
        -------
        tuple[str, bool] | None
            The resulting marker and whether it moved, or None when the
            student does not exist. At the final marker nothing moves.
        """
        try:
            student = (
                session.query(User)
                .filter(User.id == student_id)
                .with_for_update()
                .populate_existing()
                .one_or_none()
            )
            if student is None:
                return None
            advanced = next_progress(student.current_progress)
            if advanced == student.current_progress:
                return advanced, False
            student.current_progress = advanced
            return advanced, True
        except Exception:
            logger.exception("Error in UserDao.advanceProgress (student_id=%s)", student_id)
            raise

