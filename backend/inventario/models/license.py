"""Software license table."""

from typing import Optional

from sqlalchemy import Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from inventario.models.base import Base
from inventario.models.enums import ApprovalStatus


class License(Base):
    __tablename__ = "licenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    produto: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    tipo_licenca: Mapped[Optional[str]] = mapped_column("tipoLicenca", String(255))
    chave_serial: Mapped[str] = mapped_column("chaveSerial", String(255), nullable=False)
    data_expiracao: Mapped[Optional[str]] = mapped_column("dataExpiracao", String(255))
    usuario: Mapped[str] = mapped_column(String(255), nullable=False)
    cargo: Mapped[Optional[str]] = mapped_column(String(255))
    setor: Mapped[Optional[str]] = mapped_column(String(255))
    gestor: Mapped[Optional[str]] = mapped_column(String(255))
    centro_custo: Mapped[Optional[str]] = mapped_column("centroCusto", String(255))
    conta_razao: Mapped[Optional[str]] = mapped_column("contaRazao", String(255))
    nome_computador: Mapped[Optional[str]] = mapped_column("nomeComputador", String(255))
    numero_chamado: Mapped[Optional[str]] = mapped_column("numeroChamado", String(255))
    empresa: Mapped[Optional[str]] = mapped_column(String(255))
    observacoes: Mapped[Optional[str]] = mapped_column(Text)
    approval_status: Mapped[str] = mapped_column(
        String(50), server_default=text(f"'{ApprovalStatus.APPROVED.value}'")
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    created_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
