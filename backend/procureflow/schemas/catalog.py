# procureflow/schemas/catalog.py
"""
Pydantic schemas for catalog endpoints.
Fields are optional at this layer so the catalog service can report every problem in one message.
"""
from pydantic import BaseModel

class ItemCreateIn(BaseModel):
    name: str | None = None  # 2-200 characters
    category: str | None = None  # 2-100 characters
    description: str | None = None  # 10-2000 characters
    estimatedPrice: float | None = None  # > 0, USD
    unit: str | None = None
    preferredSupplier: str | None = None
    allowDuplicate: bool = False  # Override the advisory duplicate check

    def to_service_input(self) -> dict:
        return {
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "price": self.estimatedPrice,
            "unit": self.unit,
            "preferred_supplier": self.preferredSupplier,
        }

class ItemUpdateIn(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    estimatedPrice: float | None = None
    unit: str | None = None
    preferredSupplier: str | None = None
    status: str | None = None  # active | pending | archived

    def to_service_input(self) -> dict:
        mapping = {"estimatedPrice": "price", "preferredSupplier": "preferred_supplier"}
        # Only fields the client actually sent take part in a partial update
        return {mapping.get(k, k): v for k, v in self.model_dump(exclude_unset=True).items()}
