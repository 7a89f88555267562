"""
Pydantic schemas for API requests
"""

from typing import Optional
from pydantic import BaseModel, Field, StrictInt


class CreateUserRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class CreateFundSourceRequest(BaseModel):
    name: str
    default_currency: str = Field(..., description="Three letter currency code")


class CreateBudgetRequest(BaseModel):
    name: str
    spending_limit: Optional[StrictInt] = Field(None, description="Limit in minor currency units")


class CreateTransactionRequest(BaseModel):
    volume: StrictInt = Field(..., description="Signed amount in minor currency units")
    notes: Optional[str] = None
