"""Signed-in user as reported by the authentication backend."""
from email.utils import parseaddr
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class User(BaseModel):
    """Read-only view of the session's user."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(frozen=True)
    name: str = ""
    email: str
    role: Literal["user", "admin"] = "user"

    @model_validator(mode="before")
    @classmethod
    def from_backend_shape(cls, data: Any) -> Any:
        """
        Accept the backend's profile payload.

        The profile may carry ``firstName``/``lastName`` instead of ``name``
        and numeric identifiers; both are folded into the canonical fields.
        """
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if not payload.get("name"):
            parts = [payload.get("firstName") or "", payload.get("lastName") or ""]
            payload["name"] = " ".join(part for part in parts if part)
        if payload.get("id") is not None:
            payload["id"] = str(payload["id"])
        if isinstance(payload.get("role"), str):
            payload["role"] = payload["role"].lower()
        return payload

    @field_validator("email")
    @classmethod
    def email_lowercase(cls, value: str) -> str:
        """
        Normalize and validate email to lowercase.

        Args:
            value: Input email string.

        Returns:
            Lowercased email string if valid.

        Raises:
            ValueError: If the email address is malformed.
        """
        lowered = value.strip().lower()
        parsed = parseaddr(lowered)[1]
        if "@" not in parsed or parsed != lowered:
            raise ValueError("Invalid email address format.")
        return lowered

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }
