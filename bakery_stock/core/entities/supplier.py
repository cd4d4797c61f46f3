"""Supplier reference entity."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Supplier(BaseModel):
    """A raw material supplier ("fournisseur")."""

    id: str | None = None
    name: str
    contact: str = ""
    phone: str | None = None
    address: str | None = None
    categories: list[str] = Field(default_factory=list)  # e.g. flour, yeast, packaging
    active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_record(self) -> dict:
        return self.model_dump(mode="json", exclude={"id"})
