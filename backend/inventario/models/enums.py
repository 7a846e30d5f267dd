"""Enumerations shared by models, schemas and routes."""

from enum import Enum


class ApprovalStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending_approval"
    REJECTED = "rejected"


class UserRole(str, Enum):
    ADMIN = "Admin"
    USER_MANAGER = "User Manager"
    USER = "User"


class EquipmentStatus(str, Enum):
    STOCK = "Estoque"
    IN_USE = "Em Uso"
    MAINTENANCE = "Manutenção"
    DISCARDED = "Descartado"


class TermCondition(str, Enum):
    NOT_APPLICABLE = "N/A"
    PENDING = "Pendente"
    SIGNED_DELIVERY = "Assinado - Entrega"
    SIGNED_RETURN = "Assinado - Devolução"


class HistoryChangeType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    AUTO_UPDATE = "UPDATE (AUTO)"
    IMPORT_CREATE = "CREATE (IMPORT)"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
