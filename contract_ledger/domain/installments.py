"""Installment ledger generation for contract downpayments"""

import math
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Union

from contract_ledger.domain.exceptions import InvalidFrequency, InvalidPlanRange
from contract_ledger.domain.models import PaymentFrequency, ScheduledInstallment
from contract_ledger.utils.date_utils import shift_by_periods
from contract_ledger.utils.money import CENT, round_money

MIN_PLAN_MONTHS = 1
MAX_PLAN_MONTHS = 60

WEEKS_PER_MONTH = Decimal("4.33")
DAYS_PER_MONTH = 30

GRACE_PERIOD_DAYS = {
    PaymentFrequency.MONTHLY: 3,
    PaymentFrequency.WEEKLY: 1,
    PaymentFrequency.DAILY: 0,
}


def parse_frequency(value: Union[str, PaymentFrequency]) -> PaymentFrequency:
    """Raises InvalidFrequency for anything but monthly, weekly or daily"""
    try:
        return PaymentFrequency(value)
    except ValueError:
        raise InvalidFrequency(
            f"Payment frequency must be monthly, weekly, or daily (got {value!r})"
        ) from None


def validate_plan_months(payment_plan_months: int) -> int:
    if (
        isinstance(payment_plan_months, bool)
        or not isinstance(payment_plan_months, int)
        or not MIN_PLAN_MONTHS <= payment_plan_months <= MAX_PLAN_MONTHS
    ):
        raise InvalidPlanRange(
            f"Payment plan must be between {MIN_PLAN_MONTHS} and {MAX_PLAN_MONTHS} months"
        )
    return payment_plan_months


def installment_count(payment_plan_months: int, frequency: Union[str, PaymentFrequency]) -> int:
    """
    Number of installments for a plan.

    - monthly: one per month
    - weekly:  ceil(months x 4.33), e.g. 12 months -> 52
    - daily:   months x 30
    """
    frequency = parse_frequency(frequency)
    months = validate_plan_months(payment_plan_months)

    if frequency is PaymentFrequency.WEEKLY:
        return math.ceil(Decimal(months) * WEEKS_PER_MONTH)
    if frequency is PaymentFrequency.DAILY:
        return months * DAYS_PER_MONTH
    return months


def grace_period_days(frequency: Union[str, PaymentFrequency]) -> int:
    return GRACE_PERIOD_DAYS[parse_frequency(frequency)]


def split_amount(total: Decimal, count: int) -> List[Decimal]:
    """
    Split ``total`` into ``count`` centavo amounts that add up exactly.

    Leftover centavos go one each to the first installments, so no row is
    more than 0.01 away from total / count.

    Example:
        90000.00 / 52 -> 48 x 1730.77 and 4 x 1730.76
    """
    total_cents = int(round_money(total) / CENT)
    base, remainder = divmod(total_cents, count)
    return [
        Decimal(base + (1 if i < remainder else 0)) * CENT
        for i in range(count)
    ]


def generate_ledger(
    remaining_downpayment: Decimal,
    payment_plan_months: int,
    payment_frequency: Union[str, PaymentFrequency],
    first_installment_date: date,
) -> List[ScheduledInstallment]:
    """
    Build the full installment schedule for a contract downpayment.

    Requirements:
    - N rows numbered 1..N with no gaps
    - Due date i = first_installment_date shifted by (i - 1) periods,
      always measured from the first date so month-end clamping never drifts
    - Sum of scheduled amounts equals remaining_downpayment exactly
    - Grace period end is computed per row but only as advisory metadata

    Returns an empty list when the downpayment is already covered
    (remaining_downpayment <= 0).

    Raises:
        InvalidFrequency: frequency is not monthly, weekly or daily
        InvalidPlanRange: payment_plan_months outside 1..60
    """
    frequency = parse_frequency(payment_frequency)
    count = installment_count(payment_plan_months, frequency)

    remaining = round_money(remaining_downpayment)
    if remaining <= 0:
        return []

    grace_days = GRACE_PERIOD_DAYS[frequency]
    label = frequency.value.capitalize()

    ledger = []
    for i, amount in enumerate(split_amount(remaining, count), start=1):
        due_date = shift_by_periods(first_installment_date, i - 1, frequency.value)
        ledger.append(
            ScheduledInstallment(
                installment_number=i,
                installment_description=f"{label} Payment {i} of {count}",
                due_date=due_date,
                scheduled_amount=amount,
                grace_period_end=due_date + timedelta(days=grace_days),
            )
        )

    return ledger
