"""Product allocation schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr


class ProductAllocationCreate(BaseModel):
    product_id: str
    product_name: str
    user_email: EmailStr
    phase: Optional[str] = None


class ProductAllocationResponse(BaseModel):
    allocation_id: int
    product_id: str
    product_name: str
    phase: Optional[str] = None
    user_email: str
    allocated_at: datetime
    allocated_by: Optional[str] = None

    class Config:
        from_attributes = True
