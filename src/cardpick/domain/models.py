import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator
from pydantic.alias_generators import to_camel

from cardpick.domain.targets import (
    AnyCurrency,
    CurrencyFilter,
    Target,
    Untargeted,
    build_currency_filter,
    build_target,
)

HOME_CURRENCY = "HKD"

RewardUnit = Literal["cash", "miles", "points"]
PaymentType = Literal["online", "offline", "contactless", "recurring"]
RulePriority = Literal["base", "bonus", "specific"]
ContributionType = Literal["base", "stacked", "replaced"]
DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
SkipReason = Literal["minAmount", "maxAmount", "currency", "paymentType", "minMonthlySpending"]


class CatalogModel(BaseModel):
    """Catalog JSON is camelCase; Python code uses the snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _upper_codes(values: list[str]) -> list[str]:
    return [value.strip().upper() for value in values]


class GeographicRestriction(CatalogModel):
    excluded_regions: list[str] = Field(default_factory=list)
    online_exempt: bool = False


class RewardCondition(CatalogModel):
    payment_type: PaymentType | None = None
    currency: str | None = None
    excluded_currencies: list[str] = Field(default_factory=list)
    day_of_week: list[DayOfWeek] = Field(default_factory=list)
    min_amount: float | None = None
    max_amount: float | None = None
    min_monthly_spending: float | None = None
    geographic: GeographicRestriction | None = None

    _currency_filter: CurrencyFilter = PrivateAttr(default_factory=AnyCurrency)

    @field_validator("excluded_currencies")
    @classmethod
    def _normalize_excluded(cls, value: list[str]) -> list[str]:
        return _upper_codes(value)

    def model_post_init(self, __context: Any) -> None:
        self._currency_filter = build_currency_filter(self.currency)

    @property
    def currency_filter(self) -> CurrencyFilter:
        return self._currency_filter


class RewardRule(CatalogModel):
    id: str
    reward_rate: float
    reward_unit: RewardUnit
    priority: RulePriority
    description: str = ""

    categories: list[str] | None = None
    specific_merchants: list[str] | None = None
    merchant_types: list[str] | None = None
    excluded_categories: list[str] = Field(default_factory=list)
    excluded_merchants: list[str] = Field(default_factory=list)

    conditions: RewardCondition | None = None
    valid_from: dt.date | None = None
    valid_until: dt.date | None = None

    max_reward_cap: float | None = None
    monthly_spending_cap: float | None = None
    fallback_rate: float | None = None

    is_promotional: bool = False
    action_required: str | None = None
    notes: str | None = None
    source_url: str | None = None

    _target: Target = PrivateAttr(default_factory=Untargeted)

    @model_validator(mode="before")
    @classmethod
    def _priority_from_cumulative(cls, data: Any) -> Any:
        # Rules written before `priority` existed only carry isCumulative.
        if not isinstance(data, dict) or "priority" in data:
            return data
        for key in ("isCumulative", "is_cumulative"):
            if key in data:
                data = dict(data)
                data["priority"] = "bonus" if data.pop(key) else "specific"
                break
        return data

    def model_post_init(self, __context: Any) -> None:
        self._target = build_target(self.categories, self.specific_merchants, self.merchant_types)

    @property
    def target(self) -> Target:
        return self._target


class FeeStructure(CatalogModel):
    annual_fee: float = 0
    foreign_transaction_fee_rate: float | None = None
    cash_advance_fee: float | None = None
    late_payment_fee: float | None = None
    redemption_fee: float | None = None


class RewardProgramInfo(CatalogModel):
    name: str
    short_name: str | None = None
    operator: str | None = None


class RewardPrograms(CatalogModel):
    miles: RewardProgramInfo | None = None
    points: RewardProgramInfo | None = None


class CreditCard(CatalogModel):
    id: str
    name: str
    issuer: str
    is_active: bool = True
    rewards: list[RewardRule] = Field(default_factory=list)
    fees: FeeStructure = Field(default_factory=FeeStructure)
    reward_programs: RewardPrograms | None = None
    network: str | None = None
    tags: list[str] = Field(default_factory=list)
    apply_url: str | None = None
    terms_url: str | None = None
    last_updated: str | None = None


class Transaction(CatalogModel):
    amount: float = 0
    currency: str = HOME_CURRENCY
    category: str | None = None
    merchant_id: str | None = None
    merchant_type: str | None = None
    payment_type: PaymentType = "offline"
    location: str | None = None
    date: dt.date | None = None
    raw_input: str | None = None

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return value.strip().upper()

    def effective_date(self) -> dt.date:
        return self.date or dt.date.today()


class RecommendationPreferences(CatalogModel):
    preferred_reward_units: list[RewardUnit] = Field(default_factory=list)
    min_reward_rate: float | None = None
    max_annual_fee: float | None = None
    monthly_spending: float | None = None
    preferred_issuers: list[str] = Field(default_factory=list)
    excluded_card_ids: list[str] = Field(default_factory=list)


class RuleContribution(ResultModel):
    rule_id: str
    rate: float
    amount: float
    contribution_type: ContributionType
    was_capped: bool = False
    original_amount: float | None = None
    fallback_applied: bool = False

    description: str = ""
    priority: RulePriority
    is_promotional: bool = False
    valid_until: dt.date | None = None
    max_reward_cap: float | None = None
    monthly_spending_cap: float | None = None
    action_required: str | None = None


class SkippedRule(ResultModel):
    rule_id: str
    description: str = ""
    rate: float
    reason: SkipReason
    threshold: float | None = None
    actual_value: float | None = None


class RewardCalculation(ResultModel):
    card_id: str
    reward_amount: float
    reward_unit: RewardUnit
    effective_rate: float
    applied_rules: list[str] = Field(default_factory=list)
    rule_breakdown: list[RuleContribution] = Field(default_factory=list)
    fees: float = 0
    capped_out: bool = False
    skipped_rules: list[SkippedRule] = Field(default_factory=list)


class CardRecommendation(ResultModel):
    card: CreditCard
    calculation: RewardCalculation
    net_value: float
    rank: int
    is_recommended: bool


class RecommendationResult(ResultModel):
    recommendations: list[CardRecommendation] = Field(default_factory=list)
    transaction: Transaction
    total_cards_evaluated: int
    eligible_cards_count: int
    has_recommendation: bool


class CardComparison(ResultModel):
    savings_amount: float
    savings_percentage: float
    is_better: bool
