from typing import Optional

from pydantic import BaseModel, Field

from serenity.integrations.supabase_auth import AuthSession


class SignInRequest(BaseModel):
    email: str = Field(..., description="Account email address.")
    password: str = Field(..., description="Account password.")


class SignUpRequest(SignInRequest):
    display_name: Optional[str] = Field(
        default=None,
        description="Optional name shown in the app.",
    )


class AuthUserItem(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class AuthSessionResponse(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: AuthUserItem
    message: str = Field(..., description="Greeting to surface after authentication.")

    @classmethod
    def from_domain(cls, session: AuthSession, *, message: str) -> "AuthSessionResponse":
        return cls(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
            user=AuthUserItem(
                id=session.user.id,
                email=session.user.email,
                display_name=session.user.display_name,
            ),
            message=message,
        )
