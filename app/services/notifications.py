import logging
from datetime import datetime
from decimal import Decimal

from app.core.config import settings
from app.utils.clock import utcnow
from app.worker import send_email_task

logger = logging.getLogger(__name__)

def _queue_email(**kwargs) -> bool:
    # Fire-and-forget: a broker outage must not block or fail the request
    try:
        send_email_task.apply_async(kwargs=kwargs, retry=False)
        return True
    except Exception as e:
        logger.error(f"Failed to queue email '{kwargs.get('subject')}' to {kwargs.get('email_to')}: {e}")
        return False

def dispatch_float_alert(provider_name: str, float_balance: Decimal, amount: Decimal) -> bool:
    """
    Tell the operator that a provider float cannot cover outbound spend.
    """
    if not settings.ADMIN_EMAIL:
        logger.warning(f"{provider_name} float alert not sent: ADMIN_EMAIL is not configured")
        return False
    return _queue_email(
        email_to=settings.ADMIN_EMAIL,
        subject="Insufficient Balance Alert",
        html_template="float_alert.html",
        environment={
            "project_name": settings.PROJECT_NAME,
            "provider": provider_name,
            "currency": "NGN",
            "float_balance": f"{float_balance:,.2f}",
            "amount": f"{amount:,.2f}",
            "date": utcnow().strftime("%Y-%m-%d %H:%M"),
        },
    )

def dispatch_credit_notification(*, email: str, name: str, amount: Decimal, reference: str, date: datetime) -> bool:
    return _queue_email(
        email_to=email,
        subject="Wallet Credited",
        html_template="wallet_credited.html",
        environment={
            "project_name": settings.PROJECT_NAME,
            "name": name,
            "currency": "NGN",
            "amount": f"{amount:,.2f}",
            "transaction_reference": reference,
            "date": date.strftime("%Y-%m-%d %H:%M"),
        },
    )
