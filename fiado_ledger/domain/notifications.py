"""Collection reminder text for credit sales"""

from datetime import date, datetime
from typing import Optional
from fiado_ledger.domain.models import Customer, NotificationBucket, Receivable
from fiado_ledger.utils.date_utils import days_late
from fiado_ledger.utils.money import format_brl


def select_bucket(
    due_date: date | datetime,
    today: date | datetime,
    days_before: int = 2,
) -> Optional[NotificationBucket]:
    """
    Pick which reminder applies today, if any.

    Only exact-day matches trigger the before-due and on-due reminders:
    a receivable due in 5 days gets nothing until it is exactly
    `days_before` days out.
    """
    diff = days_late(due_date, today)
    if diff == -days_before:
        return NotificationBucket.BEFORE_DUE
    if diff == 0:
        return NotificationBucket.ON_DUE
    if diff > 0:
        return NotificationBucket.OVERDUE
    return None


def build_message(
    receivable: Receivable,
    customer: Customer,
    bucket: NotificationBucket,
    shop_name: str,
) -> str:
    """Render the reminder in Portuguese, quoting the original total"""
    total = format_brl(receivable.original_amount)
    due = receivable.due_date.strftime("%d/%m/%Y")

    message = f"Olá {customer.name},\n"

    if bucket == NotificationBucket.BEFORE_DUE:
        message += f"Este é um lembrete amigável de que sua fatura no valor de {total} vence em {due}."
    elif bucket == NotificationBucket.ON_DUE:
        message += f"Sua fatura no valor de {total} vence hoje, {due}."
    else:
        message += (
            f"Sua fatura no valor de {total} venceu em {due}. "
            "Por favor, regularize o pagamento o mais breve possível."
        )

    message += f"\n\nObrigado!\n{shop_name}"
    return message
