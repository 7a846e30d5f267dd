from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SettingsIn(BaseModel):
    settings: Dict[str, Any]
    username: Optional[str] = None


class TermTemplatesOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entrega_template: str = Field(default="", alias="entregaTemplate")
    devolucao_template: str = Field(default="", alias="devolucaoTemplate")
