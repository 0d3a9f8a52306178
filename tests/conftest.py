"""
SIMTA - Test Configuration and Fixtures
"""
import os
import threading
import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Set testing environment before settings are loaded
os.environ["DB_DRIVER_NAME"] = "sqlite"
os.environ["DB_DATABASE_NAME"] = ":memory:"
os.environ["WHATSAPP_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"

from simta.database.config.config import settings
from simta.database.config.connection_engine import SessionFactory, connection_engine, metadata
from simta.database.daos.user_dao import UserDao
from simta.database.entities import User
from simta.notifications.dispatcher import NotificationDispatcher, set_dispatcher
from simta.notifications.whatsapp import NotificationResult
from simta.workflow.documents import DocumentReference
from simta.workflow.principal import Principal, Role


class RecordingNotifier:
    """Notifier that records every call instead of sending."""

    def __init__(self, result: NotificationResult | None = None, error: Exception | None = None):
        self.sent = []
        self.result = result or NotificationResult(success=True)
        self.error = error
        self._lock = threading.Lock()

    def notify(self, phone, kind, **context):
        with self._lock:
            self.sent.append(SimpleNamespace(phone=phone, kind=kind, context=context))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def db_engine():
    """Fresh in-memory database per test, bound to the session factory."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    SessionFactory.configure(bind=engine)
    yield engine
    SessionFactory.configure(bind=connection_engine)
    metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def upload_root(tmp_path, monkeypatch):
    root = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(root))
    return root


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def dispatcher(notifier):
    dispatcher = NotificationDispatcher(notifier, max_workers=1)
    previous = set_dispatcher(dispatcher)
    yield dispatcher
    set_dispatcher(previous)
    dispatcher.shutdown(wait=True)


def add_user(**fields) -> Principal:
    """Insert a directory user and return its principal."""
    user = User(user_id=uuid.uuid4(), **fields)
    with SessionFactory() as session:
        UserDao().createUser(session, user)
        session.commit()
        return Principal(id=user.id, role=Role(user.role), status=user.status, name=user.name)


def read_user(user_id) -> User:
    with SessionFactory(expire_on_commit=False) as session:
        user = session.get(User, user_id)
        session.expunge(user)
        return user


@pytest.fixture
def people():
    """Two advisors assigned to one student, an unassigned advisor, an admin."""
    dosen_1 = add_user(nim_nip="198001012005011001", name="Dr. Andi", role="dosen", whatsapp="081234567890")
    dosen_2 = add_user(nim_nip="198202022006042002", name="Dr. Budi", role="dosen", whatsapp=None)
    other_dosen = add_user(nim_nip="197503032001121003", name="Dr. Citra", role="dosen")
    admin = add_user(nim_nip="ADM001", name="Admin Prodi", role="admin")
    student = add_user(
        nim_nip="2021010001",
        name="Siti Aminah",
        role="mahasiswa",
        prodi="Teknik Informatika",
        current_progress="BAB II",
        dospem_1_id=dosen_1.id,
        dospem_2_id=dosen_2.id,
        whatsapp="+62 811-1111-111",
    )
    lonely_student = add_user(nim_nip="2021010002", name="Rudi", role="mahasiswa")
    return SimpleNamespace(
        student=student,
        lonely_student=lonely_student,
        dosen_1=dosen_1,
        dosen_2=dosen_2,
        other_dosen=other_dosen,
        admin=admin,
    )


@pytest.fixture
def make_document(upload_root):
    """Write a small file to the upload area and describe it."""
    counter = {"n": 0}

    def _make(name="bab1.pdf", media_type="application/pdf", content=b"%PDF-1.4 test"):
        counter["n"] += 1
        directory = upload_root / "bimbingan"
        directory.mkdir(parents=True, exist_ok=True)
        stored = f"{counter['n']}_{name}"
        path = directory / stored
        path.write_bytes(content)
        return DocumentReference(
            file_name=stored,
            path=str(path),
            media_type=media_type,
            size=len(content),
            original_name=name,
        )

    return _make
