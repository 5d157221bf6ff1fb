from pydantic import BaseModel


# Every DomainError is rendered with this shape
class ErrorResponse(BaseModel):
    error: str
    message: str


class DeletedResponse(BaseModel):
    id: int
    deleted: bool = True
