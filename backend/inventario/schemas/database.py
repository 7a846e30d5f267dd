from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BackupStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_backup: bool = Field(alias="hasBackup")
    backup_timestamp: Optional[datetime] = Field(default=None, alias="backupTimestamp")
