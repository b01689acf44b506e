"""Persona description bound to each pet runtime."""

from pydantic import BaseModel, Field


class ExampleLine(BaseModel):
    speaker: str
    text: str


class PersonaStyle(BaseModel):
    all: list[str] = Field(default_factory=list)
    chat: list[str] = Field(default_factory=list)
    post: list[str] = Field(default_factory=list)


class Persona(BaseModel):
    """Who the pet is when it talks: narrative, style tags, few-shot examples."""

    name: str
    bio: list[str] = Field(default_factory=list)
    lore: list[str] = Field(default_factory=list)
    knowledge: list[str] = Field(default_factory=list)
    style: PersonaStyle = Field(default_factory=PersonaStyle)
    adjectives: list[str] = Field(default_factory=list)
    message_examples: list[list[ExampleLine]] = Field(default_factory=list)
    post_examples: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
