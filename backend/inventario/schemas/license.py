"""Pydantic schemas for software licenses."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LicenseFields(BaseModel):
    """Allow-listed writable license columns; unknown keys are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    produto: Optional[str] = Field(default=None, max_length=255)
    tipo_licenca: Optional[str] = Field(default=None, alias="tipoLicenca")
    chave_serial: Optional[str] = Field(default=None, alias="chaveSerial")
    data_expiracao: Optional[str] = Field(default=None, alias="dataExpiracao")
    usuario: Optional[str] = None
    cargo: Optional[str] = None
    setor: Optional[str] = None
    gestor: Optional[str] = None
    centro_custo: Optional[str] = Field(default=None, alias="centroCusto")
    conta_razao: Optional[str] = Field(default=None, alias="contaRazao")
    nome_computador: Optional[str] = Field(default=None, alias="nomeComputador")
    numero_chamado: Optional[str] = Field(default=None, alias="numeroChamado")
    empresa: Optional[str] = None
    observacoes: Optional[str] = None

    def column_values(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class LicenseCreate(LicenseFields):
    produto: str = Field(min_length=1, max_length=255)
    chave_serial: str = Field(min_length=1, alias="chaveSerial")
    usuario: str = Field(min_length=1)


class LicenseUpdate(LicenseFields):
    id: Optional[int] = None


class LicenseImportRow(LicenseFields):
    """A license row of a per-product CSV import; ``produto`` comes from the request."""

    id: Optional[int] = None
    chave_serial: str = Field(min_length=1, alias="chaveSerial")
    usuario: str = Field(min_length=1)


class LicenseCreateIn(BaseModel):
    license: LicenseCreate
    username: str = Field(min_length=1)


class LicenseUpdateIn(BaseModel):
    license: LicenseUpdate
    username: str = Field(min_length=1)


class LicenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    produto: str
    tipo_licenca: Optional[str] = Field(default=None, alias="tipoLicenca")
    chave_serial: str = Field(alias="chaveSerial")
    data_expiracao: Optional[str] = Field(default=None, alias="dataExpiracao")
    usuario: str
    cargo: Optional[str] = None
    setor: Optional[str] = None
    gestor: Optional[str] = None
    centro_custo: Optional[str] = Field(default=None, alias="centroCusto")
    conta_razao: Optional[str] = Field(default=None, alias="contaRazao")
    nome_computador: Optional[str] = Field(default=None, alias="nomeComputador")
    numero_chamado: Optional[str] = Field(default=None, alias="numeroChamado")
    empresa: Optional[str] = None
    observacoes: Optional[str] = None
    approval_status: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_by_id: Optional[int] = None


class LicenseTotalsIn(BaseModel):
    totals: Dict[str, int]
    username: Optional[str] = None

    @field_validator("totals")
    @classmethod
    def _non_negative(cls, value: Dict[str, int]) -> Dict[str, int]:
        for product, quantity in value.items():
            if quantity < 0:
                raise ValueError(f"Quantidade negativa para {product}")
        return value


class RenameProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_name: str = Field(alias="oldName", min_length=1)
    new_name: str = Field(alias="newName", min_length=1)
    username: Optional[str] = None

    @field_validator("old_name", "new_name", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value


class LicenseImportIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_name: str = Field(alias="productName", min_length=1)
    licenses: List[LicenseImportRow]
    username: Optional[str] = None
