from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    message: str | None = None
    details: str | None = None
