from pydantic import BaseModel


class CallerModel(BaseModel):
    """Identity of an authenticated caller, resolved from basic credentials."""
    username: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
