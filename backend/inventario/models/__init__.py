"""ORM model exports for convenient imports elsewhere in the app."""

from inventario.models.base import Base
from inventario.models.app_config import AppConfig
from inventario.models.audit_log import AuditLog
from inventario.models.equipment import Equipment
from inventario.models.equipment_history import EquipmentHistory
from inventario.models.license import License
from inventario.models.schema_migration import SchemaMigration
from inventario.models.user import User

__all__ = [
    "Base",
    "AppConfig",
    "AuditLog",
    "Equipment",
    "EquipmentHistory",
    "License",
    "SchemaMigration",
    "User",
]
