from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventario.models.base import Base


class EquipmentHistory(Base):
    """Append-only change trail of one equipment row."""

    __tablename__ = "equipment_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    equipment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("equipment.id", ondelete="CASCADE"), index=True
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, server_default=text("CURRENT_TIMESTAMP")
    )
    changed_by: Mapped[Optional[str]] = mapped_column("changedBy", String(255))
    change_type: Mapped[Optional[str]] = mapped_column("changeType", String(255))
    from_value: Mapped[Optional[str]] = mapped_column(Text)
    to_value: Mapped[Optional[str]] = mapped_column(Text)

    equipment = relationship("Equipment", back_populates="history")
