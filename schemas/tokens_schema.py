from sqlmodel import SQLModel, Field

from models.enums import UserRole


class AccessTokenResponse(SQLModel):
    """Schema usado para la respuesta del endpoint de login."""
    access_token: str
    token_type: str = Field(default="bearer")
    role: UserRole
