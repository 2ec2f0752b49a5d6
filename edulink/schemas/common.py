from pydantic import BaseModel


class MessageOut(BaseModel):
    message: str


class CountOut(BaseModel):
    count: int
