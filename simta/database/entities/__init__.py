"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes form the persistence backbone and are consumed by DAOs
(`daos` package) to perform CRUD and transactional operations.

Tech Stack & Conventions
------------------------
- Portable `Uuid` columns (native UUID on PostgreSQL, CHAR(32) elsewhere)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- Clear foreign keys for relational integrity

Contents
--------
- User
    Directory record of a student, advisor or admin.
    * Role and account status
    * Student progress marker and the two advisor slots (``dospem_1``, ``dospem_2``)
    * WhatsApp number for notifications

- Bimbingan
    One mentoring submission from a student to one advisor.
    * Version number per (student, advisor), rendered ``V<N>``
    * Submitted document metadata
    * Review status, feedback and optional feedback document
    * Partial unique index: one ``menunggu`` row per pair

- Reply
    Append-only discussion thread entry on a Bimbingan.
    * Sender and sender role captured at write time
    * Ordered by ``created_at``

All models are imported here so string-based relationships resolve no matter
which entity module is imported first.
"""

from simta.database.entities.user import User
from simta.database.entities.bimbingan import Bimbingan
from simta.database.entities.reply import Reply

__all__ = ["User", "Bimbingan", "Reply"]
