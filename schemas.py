"""
Database Schemas for the Laundromat Order System

Each Pydantic model below corresponds to a MongoDB collection.
The collection name is the lowercase class name (e.g., User -> "user").
Services are stored as one of three variants keyed by "pricing_model".
"""
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, RootModel, TypeAdapter, field_validator

from status_policy import INITIAL_STATUS, OrderStatus, Role

Price = Annotated[float, Field(ge=0)]
RESERVED_DETAIL_KEYS = ("quantity",)


class User(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Unique, lower-cased email address")
    password_hash: str = Field(..., description="BCrypt password hash")
    role: Role = Field(Role.customer.value, description="customer, admin or operator")
    active: bool = True
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{7,15}$")
    address: Optional[str] = Field(None, min_length=5, max_length=200)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()


# ===================== Services =====================
class ServiceBase(BaseModel):
    name: str = Field(..., min_length=2, max_length=50, description="Service name")
    description: Optional[str] = Field(None, max_length=500)
    active: bool = Field(True, description="Whether the service is currently offered")
    minimum_units: int = Field(1, ge=1, description="Minimum quantity per order")


class FixedPackageService(ServiceBase):
    """Base package price plus optional named addons (e.g. ironing)."""
    pricing_model: Literal["fixed_package_with_addons"]
    base_price: Price
    addons: Dict[str, Price] = Field(default_factory=dict)

    @field_validator("addons")
    @classmethod
    def _lower_addon_names(cls, v: Dict[str, float]) -> Dict[str, float]:
        return {name.lower(): price for name, price in v.items()}


class MultiCategoryService(ServiceBase):
    """One choice per category, e.g. {"size": {"small": 300, "large": 500}}."""
    pricing_model: Literal["multi_category_options"]
    options: Dict[str, Dict[str, Price]]

    @field_validator("options")
    @classmethod
    def _no_reserved_categories(cls, v: Dict[str, Dict[str, float]]) -> Dict[str, Dict[str, float]]:
        # choices share the order's "detail" object with these keys
        reserved = [name for name in v if name in RESERVED_DETAIL_KEYS]
        if reserved:
            raise ValueError(f"Category names not allowed: {', '.join(reserved)}")
        return v



class SingleOptionService(ServiceBase):
    pricing_model: Literal["single_option"]
    options: Dict[str, Price]


Service = Annotated[
    Union[FixedPackageService, MultiCategoryService, SingleOptionService],
    Field(discriminator="pricing_model"),
]
service_adapter = TypeAdapter(Service)


class ServiceDefinition(RootModel[Service]):
    """Request body for creating or replacing a service."""


# ===================== Orders =====================
class ServiceSnapshot(BaseModel):
    id: str
    name: str


PaymentMethod = Literal["cash", "debit_card", "credit_card", "transfer"]


class Payment(BaseModel):
    method: PaymentMethod
    amount: float = Field(..., gt=0)
    observations: Optional[str] = Field(None, max_length=500)
    registered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Order(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    customer_id: str = Field(..., description="User the order belongs to")
    service: ServiceSnapshot = Field(..., description="Service id and name at creation time")
    detail: Dict[str, Any] = Field(default_factory=dict, description="Selections for the service's pricing model")
    observations: Optional[str] = Field(None, max_length=500)
    estimated_price: float = Field(..., ge=0, description="Computed server-side, never taken from the client")
    status: OrderStatus = INITIAL_STATUS.value
    payment_status: Literal["unpaid", "paid"] = "unpaid"
    payment: Optional[Payment] = None
    active: bool = True
    version: int = Field(1, ge=1, description="Bumped on every write")


"""
Notes:
- Orders are never updated without matching their current "version".
- Services and users are deactivated, never removed.
"""
