"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean APIs for the service layer while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by callers
- DAOs surface exceptions so upper layers decide error policy

Contents
--------
- UserDao
    Directory lookups the workflow needs:
    * Fetches users by id for display population
    * Resolves the advisor assigned to a student's slot
    * Advances a student's progress marker by one step

- BimbinganDao
    Mentoring submissions:
    * Creates submissions (flush surfaces uniqueness violations)
    * Pending check and highest version per (student, advisor)
    * Scoped listing with pagination, counts, pending review queue
    * Conditional review write (only while ``menunggu``)

- ReplyDao
    Discussion threads:
    * Creates replies
    * Fetches a thread in chronological order
"""
