import datetime as dt
import json
import logging
import re

from pydantic import BaseModel, Field

from cardpick.config import settings
from cardpick.domain.models import PaymentType, Transaction

logger = logging.getLogger(__name__)

# English and Traditional Chinese keywords per spending category.
CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "dining": (
        "dining", "restaurant", "food", "eat", "meal", "lunch", "dinner", "breakfast", "cafe", "coffee",
        "brunch", "supper", "dine", "bistro", "eatery", "fast food", "burger", "pizza",
        "餐飲", "飲食", "食飯", "餐廳", "午餐", "晚餐", "早餐", "咖啡", "茶餐廳", "快餐",
    ),
    "travel": (
        "travel", "flight", "hotel", "booking", "airline", "trip", "vacation", "holiday", "accommodation",
        "旅遊", "旅行", "機票", "酒店", "訂房", "渡假",
    ),
    "online-shopping": (
        "online shopping", "ecommerce", "internet shopping",
        "網購", "網上購物", "線上購物",
    ),
    "retail": (
        "shopping", "retail", "store", "shop", "clothes", "clothing", "fashion", "apparel",
        "購物", "零售", "商店", "買嘢", "買衫", "買衣服",
    ),
    "supermarket": (
        "supermarket", "grocery", "groceries", "market", "vegetables", "fruits", "mart",
        "超市", "超級市場", "街市", "買菜",
    ),
    "entertainment": (
        "entertainment", "movie", "cinema", "concert", "theatre", "theater", "streaming",
        "娛樂", "電影", "戲院", "演唱會", "串流",
    ),
    "transport": (
        "transport", "taxi", "uber", "bus", "mtr", "train", "metro", "fuel", "petrol", "gasoline",
        "交通", "的士", "巴士", "港鐵", "火車", "汽油", "油站", "入油",
    ),
    "utilities": (
        "utilities", "electricity", "water bill", "phone bill", "bill",
        "電費", "水費", "帳單",
    ),
}

# merchant id -> (implied category, aliases)
MERCHANT_ALIASES: dict[str, tuple[str, tuple[str, ...]]] = {
    "mcdonalds": ("dining", ("mcdonalds", "mcdonald", "mcd", "麥當勞")),
    "sushiro": ("dining", ("sushiro", "壽司郎")),
    "starbucks": ("dining", ("starbucks", "星巴克")),
    "pacific-coffee": ("dining", ("pacific coffee", "太平洋咖啡")),
    "759-store": ("supermarket", ("759", "759 store", "759阿信屋", "阿信屋")),
    "circle-k": ("supermarket", ("circle k", "circlek", "circle-k", "ok便利店")),
    "wellcome": ("supermarket", ("wellcome", "惠康")),
    "parknshop": ("supermarket", ("parknshop", "park n shop", "百佳")),
    "netflix": ("entertainment", ("netflix",)),
    "spotify": ("entertainment", ("spotify",)),
    "youtube": ("entertainment", ("youtube premium", "youtube")),
    "apple": ("online-shopping", ("apple store", "app store", "itunes")),
    "watsons": ("retail", ("watsons", "屈臣氏")),
    "mannings": ("retail", ("mannings", "萬寧")),
    "shell": ("transport", ("shell", "蜆殼")),
    "cathay-pacific": ("travel", ("cathay pacific", "cathay", "國泰")),
}

RECURRING_MERCHANTS = {"netflix", "spotify", "youtube"}

PAYMENT_TYPE_KEYWORDS: dict[PaymentType, tuple[str, ...]] = {
    "online": ("online", "internet", "ecommerce", "網上", "線上", "網購"),
    "offline": ("offline", "in-store", "in store", "實體", "店內"),
    "contactless": ("contactless", "tap", "nfc", "apple pay", "google pay", "拍卡"),
    "recurring": ("recurring", "subscription", "monthly", "定期", "訂閱", "每月"),
}

_LATIN_START = r"(?<![a-z])"
_LATIN_END = r"(?![a-z])"

# First match wins, so a bare "$" falls through to the home currency.
CURRENCY_PATTERNS: dict[str, tuple[str, ...]] = {
    "HKD": (_LATIN_START + r"hkd" + _LATIN_END, _LATIN_START + r"hk\s*\$", r"港[元幣]"),
    "USD": (_LATIN_START + r"usd" + _LATIN_END, _LATIN_START + r"us\s*\$", r"美[元金]"),
    "EUR": (_LATIN_START + r"eur" + _LATIN_END, r"€", r"歐[元羅]"),
    "GBP": (_LATIN_START + r"gbp" + _LATIN_END, r"£", r"英鎊"),
    "JPY": (_LATIN_START + r"jpy" + _LATIN_END, r"¥", r"日[元圓円]", r"円"),
    "CNY": (_LATIN_START + r"(?:cny|rmb)" + _LATIN_END, r"人民[幣币]"),
    "AUD": (_LATIN_START + r"aud" + _LATIN_END, _LATIN_START + r"a\$", r"澳[元幣]"),
    "CAD": (_LATIN_START + r"cad" + _LATIN_END, _LATIN_START + r"c\$", r"加[元幣]"),
    "SGD": (_LATIN_START + r"sgd" + _LATIN_END, _LATIN_START + r"s\$", r"新加坡[元幣]"),
    "TWD": (_LATIN_START + r"twd" + _LATIN_END, _LATIN_START + r"nt\$", r"台[幣币元]"),
}

_NUMBER = r"([0-9][0-9,]*(?:\.[0-9]{1,2})?)"
AMOUNT_PATTERNS: tuple[tuple[str, float], ...] = (
    (r"\$\s*" + _NUMBER, 0.95),
    (_NUMBER + r"\s*(?:dollars?|hkd|usd|eur|gbp|元|蚊)", 0.95),
    (r"^" + _NUMBER + r"\s", 0.85),
    (r"\s" + _NUMBER + r"\s", 0.85),
    (r"\s" + _NUMBER + r"$", 0.85),
    (r"^" + _NUMBER + r"$", 0.85),
)

SUPPORTED_CATEGORIES = list(CATEGORY_KEYWORDS)


class TransactionParseError(ValueError):
    pass


class ParseConfidence(BaseModel):
    amount: float = 0
    currency: float = 0
    category: float = 0
    merchant: float = 0
    payment_type: float = 0
    overall: float = 0


class ParseResult(BaseModel):
    transaction: Transaction
    confidence: ParseConfidence
    warnings: list[str] = Field(default_factory=list)


def _contains_term(text: str, term: str) -> bool:
    # Latin terms must not sit inside a longer word ("nf" in "info"); CJK terms match anywhere.
    return re.search(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])", text) is not None


def _extract_amount(text: str) -> tuple[float | None, float]:
    for pattern, confidence in AMOUNT_PATTERNS:
        match = re.search(pattern, text)
        if not match:
            continue
        try:
            amount = float(match.group(1).replace(",", ""))
        except ValueError:
            continue
        if amount > 0:
            return amount, confidence
    return None, 0.0


def _extract_currency(text: str) -> tuple[str, float]:
    for currency, patterns in CURRENCY_PATTERNS.items():
        if any(re.search(pattern, text) for pattern in patterns):
            return currency, 0.9
    return settings.home_currency, 0.7


def _extract_merchant(text: str) -> tuple[str | None, str | None]:
    for merchant_id, (category, aliases) in MERCHANT_ALIASES.items():
        if any(_contains_term(text, alias) for alias in aliases):
            return merchant_id, category
    return None, None


def _extract_category(text: str) -> tuple[str | None, float]:
    best_category = None
    best_score = 0.0
    for category, keywords in CATEGORY_KEYWORDS.items():
        for keyword in keywords:
            if _contains_term(text, keyword):
                score = 0.8
            elif keyword in text:
                score = 0.6
            else:
                continue
            if score > best_score:
                best_category, best_score = category, score
    return best_category, best_score


def _extract_payment_type(text: str, merchant_id: str | None) -> tuple[PaymentType, float]:
    for payment_type, keywords in PAYMENT_TYPE_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return payment_type, 0.8

    if merchant_id in RECURRING_MERCHANTS:
        return "recurring", 0.6
    if merchant_id and MERCHANT_ALIASES[merchant_id][0] == "online-shopping":
        return "online", 0.6

    return "offline", 0.3


def parse_transaction(message: str) -> ParseResult:
    """Keyword parse of a purchase description such as ``"$500 HKD McDonald's"`` or ``"買衫 $800"``."""
    text = message.strip().lower()
    warnings: list[str] = []

    amount, amount_confidence = _extract_amount(text)
    if amount is None:
        warnings.append("Could not detect transaction amount")

    currency, currency_confidence = _extract_currency(text)

    merchant_id, category = _extract_merchant(text)
    if merchant_id:
        merchant_confidence, category_confidence = 0.9, 0.8
    else:
        merchant_confidence = 0.0
        category, category_confidence = _extract_category(text)
        if category is None:
            warnings.append("Could not detect spending category")

    payment_type, payment_confidence = _extract_payment_type(text, merchant_id)

    confidence = ParseConfidence(
        amount=amount_confidence,
        currency=currency_confidence,
        category=category_confidence,
        merchant=merchant_confidence,
        payment_type=payment_confidence,
        overall=(
            amount_confidence * 0.3
            + currency_confidence * 0.1
            + category_confidence * 0.25
            + merchant_confidence * 0.25
            + payment_confidence * 0.1
        ),
    )

    transaction = Transaction(
        amount=amount or 0,
        currency=currency,
        category=category,
        merchant_id=merchant_id,
        payment_type=payment_type,
        raw_input=message,
    )
    return ParseResult(transaction=transaction, confidence=confidence, warnings=warnings)


def suggest_corrections(result: ParseResult) -> list[str]:
    suggestions: list[str] = []
    if result.confidence.amount < 0.5:
        suggestions.append('Specify amount more clearly (e.g., "$500" or "500 HKD")')
    if result.confidence.category < 0.5:
        suggestions.append(f"Consider adding a category keyword: {', '.join(SUPPORTED_CATEGORIES[:5])}, etc.")
    if result.confidence.merchant < 0.3 and result.confidence.category > 0.5:
        suggestions.append("Add a specific merchant name for more accurate recommendations")
    return suggestions


def _llm_classify_category(message: str) -> str | None:
    try:
        from openai import OpenAI
    except ImportError as exc:
        raise TransactionParseError(
            "openai package is required for LLM parser. Install with: pip install -e '.[llm]'"
        ) from exc

    client = OpenAI(api_key=settings.openai_api_key)
    system_prompt = (
        "Classify the spending category of a purchase described by the user. "
        "Return JSON only with key: category. "
        f"category must be one of: {', '.join(SUPPORTED_CATEGORIES)}, or null if unclear."
    )

    response = client.chat.completions.create(
        model=settings.openai_model,
        temperature=0,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": message},
        ],
    )

    content = response.choices[0].message.content
    if not content:
        raise TransactionParseError("LLM returned empty content.")

    category = json.loads(content).get("category")
    if category not in SUPPORTED_CATEGORIES:
        return None
    return category


def build_transaction(
    message: str,
    amount: float | None = None,
    currency: str | None = None,
    category: str | None = None,
    merchant_id: str | None = None,
    payment_type: PaymentType | None = None,
    location: str | None = None,
    date: dt.date | None = None,
) -> Transaction:
    """Parse ``message`` and let any explicitly given field win over the parsed one."""
    parsed = parse_transaction(message).transaction

    if category is None and parsed.category is None and settings.parser_llm_fallback and settings.openai_api_key:
        logger.info("No category keyword found, asking LLM")
        category = _llm_classify_category(message)

    final_amount = amount if amount is not None else parsed.amount
    if final_amount is None or final_amount <= 0:
        raise TransactionParseError("Could not parse a positive amount from message.")

    return Transaction(
        amount=final_amount,
        currency=currency or parsed.currency,
        category=category or parsed.category,
        merchant_id=merchant_id or parsed.merchant_id,
        payment_type=payment_type or parsed.payment_type,
        location=location,
        date=date,
        raw_input=message,
    )
