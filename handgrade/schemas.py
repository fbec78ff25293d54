from pydantic import BaseModel, Field


class CompletionRequest(BaseModel):
    prompt: str = Field(..., description="Image encoded as a data-URI: data:<mime>;base64,<data>")


class HealthResponse(BaseModel):
    status: str = Field("ok", description="Liveness marker")
