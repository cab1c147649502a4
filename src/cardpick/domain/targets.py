"""Normalised targeting and currency filters for reward rules.

Catalog JSON uses sentinel strings (``"all"`` in a category list, ``"foreign"``
as a currency). Rules translate them into these variants once, when the rule
is validated, so matching never looks at raw strings.
"""

from dataclasses import dataclass

ALL_SENTINEL = "all"
FOREIGN_SENTINEL = "foreign"


@dataclass(frozen=True)
class AllMerchants:
    pass


@dataclass(frozen=True)
class MerchantScope:
    categories: frozenset[str] = frozenset()
    merchants: frozenset[str] = frozenset()


@dataclass(frozen=True)
class LegacyMerchantTypes:
    """Pre-migration ``merchantTypes`` list, matched against category, merchant id and merchant type."""

    types: frozenset[str]


@dataclass(frozen=True)
class Untargeted:
    pass


Target = AllMerchants | MerchantScope | LegacyMerchantTypes | Untargeted


@dataclass(frozen=True)
class AnyCurrency:
    pass


@dataclass(frozen=True)
class ForeignCurrency:
    pass


@dataclass(frozen=True)
class SpecificCurrency:
    code: str


CurrencyFilter = AnyCurrency | ForeignCurrency | SpecificCurrency


def build_target(
    categories: list[str] | None,
    specific_merchants: list[str] | None,
    merchant_types: list[str] | None,
) -> Target:
    if categories is not None or specific_merchants is not None:
        if categories and ALL_SENTINEL in categories:
            return AllMerchants()
        return MerchantScope(
            categories=frozenset(categories or ()),
            merchants=frozenset(specific_merchants or ()),
        )

    if merchant_types is not None:
        if ALL_SENTINEL in merchant_types:
            return AllMerchants()
        return LegacyMerchantTypes(types=frozenset(merchant_types))

    return Untargeted()


def build_currency_filter(value: str | None) -> CurrencyFilter:
    if not value:
        return AnyCurrency()
    if value.strip().lower() == FOREIGN_SENTINEL:
        return ForeignCurrency()
    return SpecificCurrency(code=value.strip().upper())
