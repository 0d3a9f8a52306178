"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, data access and the service functions
of the bimbingan workflow.

Contents:
    - config:
        Settings (pydantic-settings) and the SQLAlchemy engine, metadata,
        declarative base and session factory.

    - entities:
        SQLAlchemy entity models: User, Bimbingan, Reply.

    - daos:
        Data Access Objects over the entities; they never commit.

    - core:
        Workflow service functions that connect the API router with the
        database and orchestrate notifications and progress updates.

    - helpers:
        The `@transactional` decorator and UTC time helpers.
"""
