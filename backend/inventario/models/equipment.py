"""Equipment inventory table.

Column names follow the legacy schema (camelCase, Portuguese) so existing
databases and CSV exports keep working; attributes are snake_case.
"""

from typing import Optional

from sqlalchemy import Enum, Integer, String, Text, text
from sqlalchemy.dialects.mysql import MEDIUMTEXT
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventario.models.base import Base
from inventario.models.enums import ApprovalStatus, TermCondition, enum_values

LONG_TEXT = Text().with_variant(MEDIUMTEXT(), "mysql")


class Equipment(Base):
    __tablename__ = "equipment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    equipamento: Mapped[str] = mapped_column(String(255), nullable=False)
    garantia: Mapped[Optional[str]] = mapped_column(String(255))
    patrimonio: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    serial: Mapped[Optional[str]] = mapped_column(String(255), unique=True)
    usuario_atual: Mapped[Optional[str]] = mapped_column("usuarioAtual", String(255))
    usuario_anterior: Mapped[Optional[str]] = mapped_column("usuarioAnterior", String(255))
    local: Mapped[Optional[str]] = mapped_column(String(255))
    setor: Mapped[Optional[str]] = mapped_column(String(255))
    data_entrega_usuario: Mapped[Optional[str]] = mapped_column("dataEntregaUsuario", String(255))
    status: Mapped[Optional[str]] = mapped_column(String(255))
    data_devolucao: Mapped[Optional[str]] = mapped_column("dataDevolucao", String(255))
    tipo: Mapped[Optional[str]] = mapped_column(String(255))
    nota_compra: Mapped[Optional[str]] = mapped_column("notaCompra", String(255))
    nota_pl_km: Mapped[Optional[str]] = mapped_column("notaPlKm", String(255))
    termo_responsabilidade: Mapped[Optional[str]] = mapped_column("termoResponsabilidade", String(255))
    foto: Mapped[Optional[str]] = mapped_column(LONG_TEXT)
    qr_code: Mapped[Optional[str]] = mapped_column("qrCode", Text)
    observacoes: Mapped[Optional[str]] = mapped_column(Text)
    email_colaborador: Mapped[Optional[str]] = mapped_column("emailColaborador", String(255))

    # Fields fed by the periodic Absolute report
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    model: Mapped[Optional[str]] = mapped_column(String(100))
    identificador: Mapped[Optional[str]] = mapped_column(String(255))
    nome_so: Mapped[Optional[str]] = mapped_column("nomeSO", String(255))
    memoria_fisica_total: Mapped[Optional[str]] = mapped_column("memoriaFisicaTotal", String(100))
    grupo_politicas: Mapped[Optional[str]] = mapped_column("grupoPoliticas", String(100))
    pais: Mapped[Optional[str]] = mapped_column(String(100))
    cidade: Mapped[Optional[str]] = mapped_column(String(100))
    estado_provincia: Mapped[Optional[str]] = mapped_column("estadoProvincia", String(100))
    condicao_termo: Mapped[Optional[TermCondition]] = mapped_column(
        "condicaoTermo",
        Enum(TermCondition, values_callable=enum_values, name="condicao_termo"),
        server_default=text("'N/A'"),
    )

    approval_status: Mapped[str] = mapped_column(
        String(50), server_default=text(f"'{ApprovalStatus.APPROVED.value}'")
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    created_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    history = relationship(
        "EquipmentHistory",
        back_populates="equipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
