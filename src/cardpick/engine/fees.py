from cardpick.domain.models import HOME_CURRENCY, CreditCard, Transaction


def calculate_fees(card: CreditCard, transaction: Transaction, *, home_currency: str = HOME_CURRENCY) -> float:
    """Transaction-level fees only; annual and other card-level fees are shown separately."""
    rate = card.fees.foreign_transaction_fee_rate
    if transaction.currency != home_currency and rate:
        return transaction.amount * rate
    return 0.0
