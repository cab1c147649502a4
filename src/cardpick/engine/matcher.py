import datetime as dt
from typing import Literal

from cardpick.domain.models import HOME_CURRENCY, RewardCondition, RewardRule, Transaction
from cardpick.domain.targets import (
    AllMerchants,
    CurrencyFilter,
    ForeignCurrency,
    LegacyMerchantTypes,
    MerchantScope,
    SpecificCurrency,
    Target,
)

MismatchReason = Literal[
    "notStarted",
    "expired",
    "target",
    "excludedCategory",
    "excludedMerchant",
    "paymentType",
    "currency",
    "excludedCurrency",
    "dayOfWeek",
    "minAmount",
    "maxAmount",
    "geographic",
    "minMonthlySpending",
]

# Indexed by date.weekday(), Monday first.
DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _is_targeted(target: Target, transaction: Transaction) -> bool:
    if isinstance(target, AllMerchants):
        return True

    if isinstance(target, MerchantScope):
        if transaction.merchant_id and transaction.merchant_id in target.merchants:
            return True
        return bool(transaction.category) and transaction.category in target.categories

    if isinstance(target, LegacyMerchantTypes):
        keys = (transaction.merchant_type, transaction.category, transaction.merchant_id)
        return any(key in target.types for key in keys if key)

    return False


def _currency_allowed(currency_filter: CurrencyFilter, currency: str, home_currency: str) -> bool:
    if isinstance(currency_filter, ForeignCurrency):
        return currency != home_currency
    if isinstance(currency_filter, SpecificCurrency):
        return currency == currency_filter.code
    return True


def _failed_condition(
    conditions: RewardCondition,
    transaction: Transaction,
    on: dt.date,
    monthly_spending: float | None,
    home_currency: str,
) -> MismatchReason | None:
    if conditions.payment_type and conditions.payment_type != transaction.payment_type:
        return "paymentType"

    if not _currency_allowed(conditions.currency_filter, transaction.currency, home_currency):
        return "currency"

    if transaction.currency in conditions.excluded_currencies:
        return "excludedCurrency"

    if conditions.day_of_week and DAY_NAMES[on.weekday()] not in conditions.day_of_week:
        return "dayOfWeek"

    if conditions.min_amount is not None and transaction.amount < conditions.min_amount:
        return "minAmount"

    if conditions.max_amount is not None and transaction.amount > conditions.max_amount:
        return "maxAmount"

    geographic = conditions.geographic
    if geographic and transaction.location and transaction.location in geographic.excluded_regions:
        if not (geographic.online_exempt and transaction.payment_type == "online"):
            return "geographic"

    # Without the caller's spend history the threshold is assumed to be met.
    if (
        conditions.min_monthly_spending is not None
        and monthly_spending is not None
        and monthly_spending < conditions.min_monthly_spending
    ):
        return "minMonthlySpending"

    return None


def mismatch_reason(
    rule: RewardRule,
    transaction: Transaction,
    *,
    monthly_spending: float | None = None,
    home_currency: str = HOME_CURRENCY,
) -> MismatchReason | None:
    """Return the first check ``rule`` fails for ``transaction``, or None when it applies.

    Checks run in a fixed order: validity window, targeting, exclusions, then
    the optional conditions. Missing transaction fields never raise; they just
    fail whichever check needs them.
    """
    on = transaction.effective_date()

    if rule.valid_from is not None and rule.valid_from > on:
        return "notStarted"
    if rule.valid_until is not None and rule.valid_until < on:
        return "expired"

    if not _is_targeted(rule.target, transaction):
        return "target"

    if transaction.category and transaction.category in rule.excluded_categories:
        return "excludedCategory"
    merchant_keys = [transaction.merchant_id]
    if rule.merchant_types is not None and rule.categories is None and rule.specific_merchants is None:
        merchant_keys.append(transaction.merchant_type)
    if any(key in rule.excluded_merchants for key in merchant_keys if key):
        return "excludedMerchant"

    if rule.conditions is None:
        return None

    return _failed_condition(rule.conditions, transaction, on, monthly_spending, home_currency)


def matches(
    rule: RewardRule,
    transaction: Transaction,
    *,
    monthly_spending: float | None = None,
    home_currency: str = HOME_CURRENCY,
) -> bool:
    reason = mismatch_reason(
        rule,
        transaction,
        monthly_spending=monthly_spending,
        home_currency=home_currency,
    )
    return reason is None
