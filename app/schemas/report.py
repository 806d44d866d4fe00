from pydantic import BaseModel, Field


class ReportRequest(BaseModel):
    query: str = ""


class ReportResponse(BaseModel):
    report: str


class UploadResponse(BaseModel):
    url: str
    filename: str
    content_type: str = Field(alias="contentType")
    size: int

    model_config = {"populate_by_name": True}
