"""User directory model.

Rows are owned by the upstream identity service; this service reads them
to resolve callers and to show who shared a report.
"""

import enum
import uuid

from sqlalchemy import Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """User roles for role-based access control.

    - PATIENT: Data owner, can view own reports and share them
    - DOCTOR: Can view a patient's reports through an accepted share token
    - ADMIN: Can manage any patient's share tokens
    """

    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    """User account as seen by the sharing service.

    Attributes:
        id: Unique user identifier (UUID)
        email: User's email address (unique)
        display_name: Name shown to recipients of a share
        role: User role (patient, doctor, admin)
        is_active: Whether the account is active
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    display_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="userrole",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=UserRole.PATIENT,
    )
    is_active: Mapped[bool] = mapped_column(
        default=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
