"""Identity record stored in the identity list."""

import time

from pydantic import BaseModel, Field, field_validator


def _now_ms() -> int:
    return int(time.time() * 1000)


class Identity(BaseModel):
    """A named Git author identity. `id` is the creation timestamp in ms."""

    name: str
    username: str
    email: str
    id: int = Field(default_factory=_now_ms)

    @field_validator("name", "username", "email")
    @classmethod
    def _strip_nonempty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def description(self) -> str:
        return f"{self.username} <{self.email}>"
