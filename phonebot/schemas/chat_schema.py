"""Chat endpoint request and response payloads."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from phonebot.schemas.product_schema import ProductCard


class ChatRequest(BaseModel):
    """Inbound chat message."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    """Reply payload returned to the chat UI."""

    text: str
    image_url: Optional[str] = Field(default=None, serialization_alias="imageUrl")
    show_buttons: bool = Field(default=False, serialization_alias="showButtons")
    products: Optional[list[ProductCard]] = None


@dataclass
class Reply:
    """Outcome of one dialogue turn.

    ``commit`` tells the controller whether the context mutations made
    while producing this reply are kept.
    """

    text: str
    image_url: Optional[str] = None
    show_buttons: bool = False
    products: Optional[list[ProductCard]] = None
    commit: bool = True

    def to_response(self) -> ChatResponse:
        return ChatResponse(
            text=self.text,
            image_url=self.image_url,
            show_buttons=self.show_buttons,
            products=self.products,
        )
