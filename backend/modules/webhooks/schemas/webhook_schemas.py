# backend/modules/webhooks/schemas/webhook_schemas.py

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEvent(BaseModel):
    """Processor notification envelope"""
    model_config = ConfigDict(extra="allow")

    type: str
    event_id: Optional[str] = None
    created_at: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    def data_object(self) -> Dict[str, Any]:
        """Payload under ``data.object`` when present, else ``data`` itself"""
        obj = self.data.get("object")
        return obj if isinstance(obj, dict) else self.data


class WebhookAck(BaseModel):
    received: bool = True
    event_type: Optional[str] = None
    handled: bool = False
