from pydantic import BaseModel, ConfigDict


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int
    has_next: bool

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total": 42,
                "page": 1,
                "per_page": 10,
                "total_pages": 5,
                "has_next": True,
            }
        }
    )

    @classmethod
    def build(cls, *, total: int, page: int, per_page: int) -> "PaginationMeta":
        total_pages = (total + per_page - 1) // per_page if per_page else 0
        return cls(
            total=total,
            page=page,
            per_page=per_page,
            total_pages=total_pages,
            has_next=page < total_pages,
        )


class MessageOut(BaseModel):
    message: str


class CreatedOut(BaseModel):
    id: str
    message: str


class ValidationIssueOut(BaseModel):
    field: str
    message: str
    type: str | None = None


class ErrorDetailOut(BaseModel):
    code: str
    message: str
    request_id: str
    path: str
    details: list[ValidationIssueOut] | None = None


class ErrorOut(BaseModel):
    error: ErrorDetailOut

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": {
                    "code": "insufficient_stock",
                    "message": "Insufficient stock for this movement",
                    "request_id": "8d8f2b00-6c79-4a45-8ff4-b0a5f2bc4bc2",
                    "path": "/stock-movements",
                    "details": None,
                }
            }
        }
    )
