"""Pydantic request/response schemas for the catalogue API."""

from pydantic import BaseModel, Field


class CreateItemRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    price: int = Field(ge=0, description="Price in cents")
    image: str | None = None
    large_image: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Fuzzy socks",
                    "description": "Warm and very fuzzy",
                    "price": 1299,
                    "image": "https://images.example.com/socks.jpg",
                }
            ]
        }
    }


class UpdateItemRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: int | None = Field(default=None, ge=0)
    image: str | None = None
    large_image: str | None = None


class ItemResponse(BaseModel):
    id: str
    title: str
    description: str
    price: int
    image: str | None = None
    large_image: str | None = None
    user_id: str


class ItemIdResponse(BaseModel):
    item_id: str
