from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Mapping, Optional, Union


class Attachment(BaseModel):
    """Attachment metadata sent along with a smart-input message"""
    name: Optional[str] = None
    type: Optional[str] = None  # e.g., "image", "audio", "document"
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    size: Optional[int] = None
    extracted_text: Optional[str] = Field(default=None, alias="extractedText")
    metadata: Optional[str] = None
    test_attachment_id: Optional[str] = Field(default=None, alias="testAttachmentId")
    is_test_attachment: Optional[bool] = Field(default=None, alias="isTestAttachment")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "name": "receipt.jpg",
                    "type": "image",
                    "mimeType": "image/jpeg",
                    "size": 48213,
                    "extractedText": "Coffee 4.50",
                }
            ]
        },
    )


class ChatRequest(BaseModel):
    text: Optional[str] = None
    attachments: List[Attachment] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """
        Build the JSON body shared by the streaming and fallback endpoints.

        Blank text and an empty attachment list are left out entirely,
        attachments serialize with the backend's camelCase field names.
        """
        body: dict[str, Any] = {}
        if self.text and self.text.strip():
            body["text"] = self.text.strip()
        if self.attachments:
            body["attachments"] = [
                a.model_dump(by_alias=True, exclude_none=True) for a in self.attachments
            ]
        return body


def coerce_request(request: Union[ChatRequest, Mapping[str, Any]]) -> ChatRequest:
    """Accept either a ChatRequest or a plain mapping with text/attachments."""
    if isinstance(request, ChatRequest):
        return request
    return ChatRequest.model_validate(dict(request))
