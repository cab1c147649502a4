import datetime as dt

from pydantic import BaseModel, Field

from cardpick.domain.models import PaymentType, RecommendationPreferences


class RecommendRequest(BaseModel):
    message: str | None = None
    amount: float | None = None
    currency: str | None = None
    category: str | None = None
    merchant_id: str | None = None
    payment_type: PaymentType | None = None
    location: str | None = None
    date: dt.date | None = None
    preferences: RecommendationPreferences = Field(default_factory=RecommendationPreferences)
