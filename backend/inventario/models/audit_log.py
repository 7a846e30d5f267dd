from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from inventario.models.base import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, server_default=text("CURRENT_TIMESTAMP")
    )
    username: Mapped[Optional[str]] = mapped_column(String(255))
    action_type: Mapped[Optional[str]] = mapped_column(String(255))
    target_type: Mapped[Optional[str]] = mapped_column(String(255))
    target_id: Mapped[Optional[str]] = mapped_column(String(255))
    details: Mapped[Optional[str]] = mapped_column(Text)
