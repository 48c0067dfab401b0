"""
Agent-to-agent message and discovery models.

A message carries an ordered list of parts; the intake agent expects a file
part with a base64-encoded image, the processing agent a text part holding
the purchase order JSON. Field names follow the camelCase used on the wire
("messageId", "contextId", "mimeType", "defaultInputModes", ...).
"""
import uuid
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .wire import WireModel


class TextPart(WireModel):
    kind: Literal["text"] = "text"
    text: str
    metadata: Optional[Dict[str, Any]] = None


class FileContent(WireModel):
    data: Optional[str] = Field(default=None, alias="bytes")   # base64
    uri: Optional[str] = None
    mime_type: Optional[str] = None
    name: Optional[str] = None


class FilePart(WireModel):
    kind: Literal["file"] = "file"
    file: FileContent
    metadata: Optional[Dict[str, Any]] = None

    def content_type(self, default: str = "image/png") -> str:
        """MIME type from the file itself, then from part metadata."""
        if self.file.mime_type:
            return self.file.mime_type
        for key in ("contentType", "Content-Type"):
            if self.metadata and self.metadata.get(key):
                return str(self.metadata[key])
        return default


Part = Union[TextPart, FilePart]


class Message(WireModel):
    kind: Literal["message"] = "message"
    role: Literal["user", "agent"] = "user"
    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    context_id: Optional[str] = None
    parts: List[Part] = Field(default_factory=list)

    def first_text(self) -> Optional[TextPart]:
        return next((p for p in self.parts if isinstance(p, TextPart)), None)

    def first_file(self) -> Optional[FilePart]:
        return next((p for p in self.parts if isinstance(p, FilePart)), None)

    @classmethod
    def agent_reply(cls, request: "Message", text: str) -> "Message":
        return cls(role="agent", context_id=request.context_id, parts=[TextPart(text=text)])


class MessageSendParams(WireModel):
    message: Message
    metadata: Optional[Dict[str, Any]] = None


class AgentCapabilities(WireModel):
    streaming: bool = False
    push_notifications: bool = False


class AgentSkill(WireModel):
    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)


class AgentCard(WireModel):
    """Discovery document served at /.well-known/agent.json."""
    name: str
    description: str
    url: str
    version: str = "1.0.0"
    default_input_modes: List[str] = Field(default_factory=lambda: ["text"])
    default_output_modes: List[str] = Field(default_factory=lambda: ["text"])
    capabilities: AgentCapabilities = Field(default_factory=AgentCapabilities)
    skills: List[AgentSkill] = Field(default_factory=list)


class JsonRpcRequest(BaseModel):
    jsonrpc: Literal["2.0"] = "2.0"
    id: Optional[Union[str, int]] = None
    method: str
    params: Optional[Dict[str, Any]] = None
