from enum import Enum
from pydantic import BaseModel, Field
from typing import Tuple, Union

class CustomerField(str, Enum):
    """Editable fields of the creation form, keyed by their wire names."""
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"

class Customer(BaseModel):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str

    class Config:
        frozen = True
        populate_by_name = True

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)

# Replaced wholesale after each fetch, never edited in place
CustomerCollection = Tuple[Customer, ...]

class ApiError(BaseModel):
    code: str
    message: str

    class Config:
        frozen = True

_FIELD_ATTRIBUTES = {
    CustomerField.FIRST_NAME: "first_name",
    CustomerField.LAST_NAME: "last_name",
    CustomerField.EMAIL: "email",
}

class DraftCustomer(BaseModel):
    """Working copy edited while the creation dialog is open."""
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str = ""

    class Config:
        populate_by_name = True
        validate_assignment = True

    def get(self, field: Union[CustomerField, str]) -> str:
        return getattr(self, _FIELD_ATTRIBUTES[CustomerField(field)])

    def set(self, field: Union[CustomerField, str], value: str) -> None:
        setattr(self, _FIELD_ATTRIBUTES[CustomerField(field)], value)

    def missing_fields(self) -> list[CustomerField]:
        # Presence only; the create endpoint validates email syntax
        return [field for field in CustomerField if not self.get(field)]

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def to_customer(self) -> Customer:
        return Customer(first_name=self.first_name, last_name=self.last_name, email=self.email)
