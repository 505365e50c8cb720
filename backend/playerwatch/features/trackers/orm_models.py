"""ORM model for persisted scope state."""

from datetime import datetime

from sqlalchemy import DateTime as SQLDateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from playerwatch.core.database import Base


class InstanceStateORM(Base):
    """Serialized ``InstanceState`` of one scope."""

    __tablename__ = "instance_states"

    scope_key: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Scope the state belongs to (e.g., a Discord guild id)",
    )

    state_json: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="InstanceState serialized as JSON",
    )

    updated_at: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="When this state was last written",
    )
