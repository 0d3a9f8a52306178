"""
Acting principal and the role vocabulary of the workflow.

Every workflow operation takes an explicit `Principal` argument instead of
reading a request-global user object.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from simta.workflow.errors import ForbiddenError, InvalidInputError


class Role(str, Enum):
    MAHASISWA = "mahasiswa"
    DOSEN = "dosen"
    ADMIN = "admin"


class AdvisorSlot(str, Enum):
    """Which of the student's two advisor assignments a submission targets."""

    DOSPEM_1 = "dospem_1"
    DOSPEM_2 = "dospem_2"

    @property
    def number(self) -> int:
        return 1 if self is AdvisorSlot.DOSPEM_1 else 2


class SenderRole(str, Enum):
    """Role recorded on a reply. Admins are recorded as ``DOSEN``."""

    MAHASISWA = "mahasiswa"
    DOSEN = "dosen"

    @classmethod
    def for_role(cls, role: "Role") -> "SenderRole":
        return cls.MAHASISWA if role is Role.MAHASISWA else cls.DOSEN


ACTIVE_STATUS = "aktif"


@dataclass(frozen=True)
class Principal:
    """An authenticated user acting on the workflow."""

    id: UUID
    role: Role
    status: str = ACTIVE_STATUS
    name: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


def require_active(principal: Principal) -> None:
    if not principal.is_active:
        raise ForbiddenError("Akun Anda tidak aktif. Hubungi admin.")


def require_role(principal: Principal, *roles: Role) -> None:
    require_active(principal)
    if principal.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(f"Akses ditolak. Hanya untuk role: {allowed}")


def parse_slot(value) -> AdvisorSlot:
    if isinstance(value, AdvisorSlot):
        return value
    try:
        return AdvisorSlot(value)
    except ValueError:
        raise InvalidInputError("Jenis dosen harus dospem_1 atau dospem_2")
