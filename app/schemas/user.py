from pydantic import BaseModel, EmailStr, ConfigDict, Field

from app.schemas.role import Role


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: Role


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)
    role_id: int | None = None  # If not provided, defaults to "accountant"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
