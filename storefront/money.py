from decimal import Decimal, ROUND_HALF_UP


def round_money(value: float) -> int:
    """
    Округление денежной суммы до целого "половина от нуля".
    Применяется один раз к итоговому произведению, а не к цене за штуку.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_price(amount: int, show_symbol: bool = True) -> str:
    """10000 -> '10 000 ₸' (или '10 000' без символа валюты)"""
    digits = f"{amount:,}".replace(",", " ")
    return f"{digits} ₸" if show_symbol else digits


def format_rate(rate: float) -> str:
    """0.1 -> '10%'"""
    return f"{round_money(rate * 100)}%"
