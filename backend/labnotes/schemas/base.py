from pydantic import BaseModel


class RequestModel(BaseModel):
    """Request bodies reject unknown fields."""

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class ORMModel(BaseModel):
    class Config:
        from_attributes = True


class Message(BaseModel):
    message: str
