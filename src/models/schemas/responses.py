from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response model for 400 and 5xx responses"""

    success: bool = False
    errorMessage: str


class WebhookResponse(BaseModel):
    """Answer to a webhook delivery; the review itself runs afterwards."""

    status: str
    message: str
    pr_number: Optional[int] = None
