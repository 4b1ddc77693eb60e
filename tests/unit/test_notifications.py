"""Unit tests for collection reminders"""

from datetime import date, datetime
from decimal import Decimal
from fiado_ledger.domain.models import Customer, NotificationBucket, Receivable
from fiado_ledger.domain.notifications import build_message, select_bucket

DUE = date(2024, 1, 10)


def test_select_bucket_exact_days():
    assert select_bucket(DUE, date(2024, 1, 8)) == NotificationBucket.BEFORE_DUE
    assert select_bucket(DUE, date(2024, 1, 10)) == NotificationBucket.ON_DUE
    assert select_bucket(DUE, date(2024, 1, 11)) == NotificationBucket.OVERDUE
    assert select_bucket(DUE, date(2024, 3, 1)) == NotificationBucket.OVERDUE


def test_select_bucket_no_range_before_due():
    """Only exactly two days out triggers the early reminder"""
    assert select_bucket(DUE, date(2024, 1, 5)) is None
    assert select_bucket(DUE, date(2024, 1, 7)) is None
    assert select_bucket(DUE, date(2024, 1, 9)) is None


def test_select_bucket_custom_window_and_time_of_day():
    assert select_bucket(DUE, datetime(2024, 1, 5, 18, 45), days_before=5) == NotificationBucket.BEFORE_DUE
    assert select_bucket(DUE, datetime(2024, 1, 10, 23, 0)) == NotificationBucket.ON_DUE


def _message(bucket: NotificationBucket) -> str:
    receivable = Receivable(id="A1", customer_id=1, original_amount=Decimal("150"), due_date=DUE)
    customer = Customer(id=1, name="João Silva", whatsapp="5511999999999")
    return build_message(receivable, customer, bucket, "Kombat Moto Peças")


def test_message_before_due():
    text = _message(NotificationBucket.BEFORE_DUE)
    assert text.startswith("Olá João Silva,\n")
    assert "lembrete amigável" in text
    assert "R$ 150.00" in text
    assert "vence em 10/01/2024" in text
    assert text.endswith("Obrigado!\nKombat Moto Peças")


def test_message_on_due():
    text = _message(NotificationBucket.ON_DUE)
    assert "vence hoje, 10/01/2024" in text


def test_message_overdue_quotes_original_total():
    """The reminder names the original amount, not the amount with charges"""
    text = _message(NotificationBucket.OVERDUE)
    assert "venceu em 10/01/2024" in text
    assert "regularize o pagamento" in text
    assert "R$ 150.00" in text
