"""
Reply DAO

Purpose
-------
Data-access layer for the `Reply` ORM entity. Provides:
- Reply creation
- Thread retrieval by bimbingan (chronological)

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Replies are append-only; there is no update or delete.

Error Handling
--------------
- Methods log the failure with `logger.exception(...)` and re-raise.
"""

import logging
from uuid import UUID

from sqlalchemy import asc
from sqlalchemy.orm import Session

from simta.database.entities.reply import Reply

logger = logging.getLogger(__name__)


class ReplyDao:
    """
    Data Access Object (DAO) for the discussion thread of a bimbingan.
    """

    def createReply(self, session: Session, reply: Reply) -> Reply:
        """
        Add and flush a new reply.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        reply : Reply
            Reply entity instance to be added.

        Returns
        -------
        Reply
            The reply that was added.
        """
        try:
            session.add(reply)
            session.flush()
            return reply
        except Exception:
            logger.exception("Error in ReplyDao.createReply (bimbingan_id=%s)", reply.bimbingan_id)
            raise

    def fetchRepliesByBimbinganId(self, session: Session, bimbingan_id: UUID) -> list[Reply]:
        """
        All replies of a bimbingan, ordered by creation time (ascending).
        """
        try:
            return (
                session.query(Reply)
                .filter(Reply.bimbingan_id == bimbingan_id)
                .order_by(asc(Reply.created_at))
                .all()
            )
        except Exception:
            logger.exception("Error in ReplyDao.fetchRepliesByBimbinganId (bimbingan_id=%s)", bimbingan_id)
            raise

