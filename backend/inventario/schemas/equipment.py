"""Pydantic schemas for equipment records.

Attributes are snake_case like the ORM model; the camelCase aliases are the
names the UI and the CSV importer send and receive.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventario.models.enums import EquipmentStatus, TermCondition


class EquipmentFields(BaseModel):
    """Allow-listed writable equipment columns; unknown keys are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    equipamento: Optional[str] = Field(default=None, max_length=255)
    garantia: Optional[str] = None
    patrimonio: Optional[str] = None
    serial: Optional[str] = None
    usuario_atual: Optional[str] = Field(default=None, alias="usuarioAtual")
    usuario_anterior: Optional[str] = Field(default=None, alias="usuarioAnterior")
    local: Optional[str] = None
    setor: Optional[str] = None
    data_entrega_usuario: Optional[str] = Field(default=None, alias="dataEntregaUsuario")
    status: Optional[EquipmentStatus] = None
    data_devolucao: Optional[str] = Field(default=None, alias="dataDevolucao")
    tipo: Optional[str] = None
    nota_compra: Optional[str] = Field(default=None, alias="notaCompra")
    nota_pl_km: Optional[str] = Field(default=None, alias="notaPlKm")
    termo_responsabilidade: Optional[str] = Field(default=None, alias="termoResponsabilidade")
    foto: Optional[str] = None
    qr_code: Optional[str] = Field(default=None, alias="qrCode")
    observacoes: Optional[str] = None
    email_colaborador: Optional[str] = Field(default=None, alias="emailColaborador")
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    identificador: Optional[str] = None
    nome_so: Optional[str] = Field(default=None, alias="nomeSO")
    memoria_fisica_total: Optional[str] = Field(default=None, alias="memoriaFisicaTotal")
    grupo_politicas: Optional[str] = Field(default=None, alias="grupoPoliticas")
    pais: Optional[str] = None
    cidade: Optional[str] = None
    estado_provincia: Optional[str] = Field(default=None, alias="estadoProvincia")
    condicao_termo: Optional[TermCondition] = Field(default=None, alias="condicaoTermo")

    @field_validator("serial", "patrimonio", mode="before")
    @classmethod
    def _blank_key_is_null(cls, value):
        # Unique columns: "" would collide across rows, NULL does not
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def column_values(self) -> dict:
        """Attribute -> value for the fields the caller actually sent."""

        return self.model_dump(exclude_unset=True, exclude={"id"}, mode="json")


class EquipmentCreate(EquipmentFields):
    equipamento: str = Field(min_length=1, max_length=255)


class EquipmentUpdate(EquipmentFields):
    # The UI echoes the row id back; the path id wins
    id: Optional[int] = None


class EquipmentImportRow(EquipmentFields):
    """One row of a periodic update or consolidation batch."""

    id: Optional[int] = None


class EquipmentCreateIn(BaseModel):
    equipment: EquipmentCreate
    username: str = Field(min_length=1)


class EquipmentUpdateIn(BaseModel):
    equipment: EquipmentUpdate
    username: str = Field(min_length=1)


class EquipmentBatchIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    equipment_list: List[EquipmentImportRow] = Field(alias="equipmentList")
    username: str = Field(min_length=1)


class EquipmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    equipamento: str
    garantia: Optional[str] = None
    patrimonio: Optional[str] = None
    serial: Optional[str] = None
    usuario_atual: Optional[str] = Field(default=None, alias="usuarioAtual")
    usuario_anterior: Optional[str] = Field(default=None, alias="usuarioAnterior")
    local: Optional[str] = None
    setor: Optional[str] = None
    data_entrega_usuario: Optional[str] = Field(default=None, alias="dataEntregaUsuario")
    status: Optional[str] = None
    data_devolucao: Optional[str] = Field(default=None, alias="dataDevolucao")
    tipo: Optional[str] = None
    nota_compra: Optional[str] = Field(default=None, alias="notaCompra")
    nota_pl_km: Optional[str] = Field(default=None, alias="notaPlKm")
    termo_responsabilidade: Optional[str] = Field(default=None, alias="termoResponsabilidade")
    foto: Optional[str] = None
    qr_code: Optional[str] = Field(default=None, alias="qrCode")
    observacoes: Optional[str] = None
    email_colaborador: Optional[str] = Field(default=None, alias="emailColaborador")
    brand: Optional[str] = None
    model: Optional[str] = None
    identificador: Optional[str] = None
    nome_so: Optional[str] = Field(default=None, alias="nomeSO")
    memoria_fisica_total: Optional[str] = Field(default=None, alias="memoriaFisicaTotal")
    grupo_politicas: Optional[str] = Field(default=None, alias="grupoPoliticas")
    pais: Optional[str] = None
    cidade: Optional[str] = None
    estado_provincia: Optional[str] = Field(default=None, alias="estadoProvincia")
    condicao_termo: Optional[str] = Field(default=None, alias="condicaoTermo")
    approval_status: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_by_id: Optional[int] = None

    @field_validator("condicao_termo", mode="before")
    @classmethod
    def _enum_as_text(cls, value):
        return value.value if isinstance(value, Enum) else value


class EquipmentHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    equipment_id: Optional[int] = None
    timestamp: Optional[datetime] = None
    changed_by: Optional[str] = Field(default=None, alias="changedBy")
    change_type: Optional[str] = Field(default=None, alias="changeType")
    from_value: Optional[str] = None
    to_value: Optional[str] = None
