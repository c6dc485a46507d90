"""
Database Schemas

MongoDB collection schemas and request payloads as Pydantic models.
Each collection model's lowercased name is its collection name.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from config import MAX_PRODUCT_IMAGES

Role = Literal["customer", "admin", "vendor"]


class Category(BaseModel):
    name: str = Field(..., description="Display name")
    cat_no: int = Field(..., ge=0, description="Numeric code used in product ids")


class Product(BaseModel):
    product_id: str = Field(..., description="Display id, e.g. PAT03CAT07")
    name: str
    description: str
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: str = Field(..., description="Referenced Category _id")
    stock_quantity: int = Field(0, ge=0)
    gender: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    images: List[str] = Field(default_factory=list, max_length=MAX_PRODUCT_IMAGES)
    is_deleted: bool = False
    is_updated: bool = False


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., description="BCrypt hashed password")
    phone_number: Optional[str] = None
    role: Role = Field("customer", description="Role: customer | admin | vendor")
    address: Optional[str] = None
    is_deleted: bool = False


# Request payloads

class ProductFields(BaseModel):
    """Form fields of a product create/update request; None means "not sent"."""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None


class DeleteProductInput(BaseModel):
    productId: Optional[str] = None


class RegisterInput(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    address: Optional[str] = None


class LoginInput(BaseModel):
    email: EmailStr
    password: str


class UserLookupInput(BaseModel):
    UserId: Optional[str] = None
