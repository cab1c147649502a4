import datetime as dt

from cardpick.domain.models import RewardRule, Transaction
from cardpick.domain.targets import AllMerchants, ForeignCurrency, LegacyMerchantTypes, SpecificCurrency, Untargeted
from cardpick.engine.matcher import matches, mismatch_reason

SATURDAY = dt.date(2026, 3, 14)
MONDAY = dt.date(2026, 3, 16)


def _rule(**overrides) -> RewardRule:
    data = {
        "id": "rule",
        "rewardRate": 0.01,
        "rewardUnit": "cash",
        "priority": "base",
        "categories": ["dining"],
    }
    data.update(overrides)
    return RewardRule.model_validate(data)


def _txn(**overrides) -> Transaction:
    data = {
        "amount": 500,
        "currency": "HKD",
        "category": "dining",
        "paymentType": "offline",
        "date": MONDAY,
    }
    data.update(overrides)
    return Transaction.model_validate(data)


def test_all_sentinel_matches_without_category() -> None:
    rule = _rule(categories=["all"])

    assert isinstance(rule.target, AllMerchants)
    assert matches(rule, _txn(category=None))


def test_category_match_and_mismatch() -> None:
    rule = _rule()

    assert matches(rule, _txn())
    assert mismatch_reason(rule, _txn(category="travel")) == "target"


def test_specific_merchant_matches_regardless_of_category() -> None:
    rule = _rule(categories=None, specificMerchants=["mcdonalds"])

    assert matches(rule, _txn(merchantId="mcdonalds", category="fast-food"))


def test_specific_merchant_rule_needs_merchant_id() -> None:
    rule = _rule(categories=None, specificMerchants=["mcdonalds"])

    assert mismatch_reason(rule, _txn(category="dining")) == "target"


def test_merchant_or_category_is_enough() -> None:
    rule = _rule(categories=["dining"], specificMerchants=["sushiro"])

    assert matches(rule, _txn(merchantId="mcdonalds", category="dining"))
    assert matches(rule, _txn(merchantId="sushiro", category=None))


def test_rule_without_targeting_never_matches() -> None:
    rule = RewardRule.model_validate({"id": "dead", "rewardRate": 0.05, "rewardUnit": "cash", "priority": "bonus"})

    assert isinstance(rule.target, Untargeted)
    assert mismatch_reason(rule, _txn()) == "target"


def test_legacy_merchant_types_match_merchant_type() -> None:
    rule = _rule(categories=None, merchantTypes=["supermarket"])

    assert isinstance(rule.target, LegacyMerchantTypes)
    assert matches(rule, _txn(category=None, merchantType="supermarket"))
    assert matches(rule, _txn(category="supermarket"))
    assert not matches(rule, _txn(category="dining"))


def test_legacy_cumulative_flag_sets_priority() -> None:
    stacked = RewardRule.model_validate(
        {"id": "a", "rewardRate": 0.01, "rewardUnit": "cash", "isCumulative": True, "merchantTypes": ["all"]}
    )
    exclusive = RewardRule.model_validate(
        {"id": "b", "rewardRate": 0.01, "rewardUnit": "cash", "isCumulative": False, "merchantTypes": ["all"]}
    )

    assert stacked.priority == "bonus"
    assert exclusive.priority == "specific"
    assert isinstance(stacked.target, AllMerchants)


def test_exclusions_apply_after_targeting() -> None:
    rule = _rule(categories=["all"], excludedCategories=["gambling"], excludedMerchants=["casino", "cash-advance"])

    assert mismatch_reason(rule, _txn(category="gambling")) == "excludedCategory"
    assert mismatch_reason(rule, _txn(merchantId="casino")) == "excludedMerchant"
    assert matches(rule, _txn(merchantId="sushiro"))


def test_merchant_type_exclusion_only_for_legacy_rules() -> None:
    current = _rule(categories=["all"], excludedMerchants=["cash-advance"])
    legacy = _rule(categories=None, merchantTypes=["all"], excludedMerchants=["cash-advance"])
    legacy_typed = _rule(categories=None, merchantTypes=["supermarket"], excludedMerchants=["cash-advance"])
    txn = _txn(category="supermarket", merchantType="cash-advance")

    assert matches(current, txn)
    assert mismatch_reason(legacy, txn) == "excludedMerchant"
    assert mismatch_reason(legacy_typed, txn) == "excludedMerchant"


def test_temporal_bounds_are_inclusive() -> None:
    assert mismatch_reason(_rule(validUntil="2026-03-15"), _txn()) == "expired"
    assert mismatch_reason(_rule(validFrom="2026-03-17"), _txn()) == "notStarted"
    assert matches(_rule(validFrom="2026-03-16", validUntil="2026-03-16"), _txn())


def test_missing_date_uses_today() -> None:
    today = dt.date.today()
    rule = _rule(validFrom=today.isoformat(), validUntil=today.isoformat())

    assert matches(rule, _txn(date=None))


def test_payment_type_condition() -> None:
    rule = _rule(conditions={"paymentType": "online"})

    assert matches(rule, _txn(paymentType="online"))
    assert mismatch_reason(rule, _txn(paymentType="contactless")) == "paymentType"


def test_foreign_currency_condition() -> None:
    rule = _rule(conditions={"currency": "foreign"})

    assert isinstance(rule.conditions.currency_filter, ForeignCurrency)
    assert mismatch_reason(rule, _txn(currency="HKD")) == "currency"
    assert matches(rule, _txn(currency="usd"))
    assert matches(rule, _txn(currency="HKD"), home_currency="SGD")


def test_specific_currency_condition() -> None:
    rule = _rule(conditions={"currency": "hkd"})

    assert rule.conditions.currency_filter == SpecificCurrency("HKD")
    assert matches(rule, _txn(currency="HKD"))
    assert mismatch_reason(rule, _txn(currency="JPY")) == "currency"


def test_excluded_currencies() -> None:
    rule = _rule(conditions={"excludedCurrencies": ["usd", "CNY"]})

    assert mismatch_reason(rule, _txn(currency="USD")) == "excludedCurrency"
    assert matches(rule, _txn(currency="EUR"))


def test_day_of_week_condition() -> None:
    rule = _rule(conditions={"dayOfWeek": ["saturday", "sunday"]})

    assert matches(rule, _txn(date=SATURDAY))
    assert mismatch_reason(rule, _txn(date=MONDAY)) == "dayOfWeek"


def test_amount_range_is_inclusive() -> None:
    rule = _rule(conditions={"minAmount": 500, "maxAmount": 1000})

    assert matches(rule, _txn(amount=500))
    assert matches(rule, _txn(amount=1000))
    assert mismatch_reason(rule, _txn(amount=499.99)) == "minAmount"
    assert mismatch_reason(rule, _txn(amount=1000.01)) == "maxAmount"


def test_online_exemption_overrides_excluded_region() -> None:
    rule = _rule(
        categories=["all"],
        conditions={"geographic": {"excludedRegions": ["excludedCountry"], "onlineExempt": True}},
    )

    assert matches(rule, _txn(location="excludedCountry", paymentType="online"))
    assert mismatch_reason(rule, _txn(location="excludedCountry", paymentType="offline")) == "geographic"
    assert matches(rule, _txn(location=None))


def test_excluded_region_without_exemption() -> None:
    rule = _rule(conditions={"geographic": {"excludedRegions": ["MO"]}})

    assert mismatch_reason(rule, _txn(location="MO", paymentType="online")) == "geographic"
    assert matches(rule, _txn(location="HK"))


def test_min_monthly_spending_only_enforced_with_history() -> None:
    rule = _rule(conditions={"minMonthlySpending": 5000})

    assert matches(rule, _txn())
    assert mismatch_reason(rule, _txn(), monthly_spending=1000) == "minMonthlySpending"
    assert matches(rule, _txn(), monthly_spending=5000)


def test_unparsed_transaction_does_not_raise() -> None:
    empty = Transaction()

    assert matches(_rule(categories=["all"]), empty)
    assert not matches(_rule(), empty)
    assert not matches(_rule(categories=None, specificMerchants=["netflix"]), empty)
    assert not matches(_rule(conditions={"minAmount": 1}), empty)
