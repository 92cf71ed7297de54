"""
Celery tasks for wallet operations:
- Incoming-transfer SMS notification with exponential backoff retries
"""

import logging
from celery import shared_task

logger = logging.getLogger(__name__)

TRANSFER_SMS_TEMPLATE = (
    'FinMo: You received {amount} {token} from {sender}. '
    'Open the app to view your balance.'
)


def _format_amount(amount):
    text = format(amount.normalize(), 'f')
    if '.' not in text:
        return f'{text}.00'
    whole, frac = text.split('.')
    return f'{whole}.{frac.ljust(2, "0")}'


@shared_task(bind=True, max_retries=3, default_retry_delay=10)
def task_notify_transfer_recipient(self, transaction_id):
    """Text the recipient of a completed internal transfer."""
    from accounts.otp_service import send_sms
    from wallet.models import Transaction

    try:
        tx = Transaction.objects.select_related('sender', 'recipient').get(pk=transaction_id)
    except Transaction.DoesNotExist:
        logger.error(f'task_notify_transfer_recipient: transaction {transaction_id} not found')
        return {'success': False, 'error': 'Transaction not found'}

    if not tx.recipient or not tx.recipient.phone_number:
        return {'success': False, 'error': 'Recipient has no phone number'}

    body = TRANSFER_SMS_TEMPLATE.format(
        amount=_format_amount(tx.amount),
        token=tx.token,
        sender=tx.sender.get_display_name(),
    )

    if send_sms(tx.recipient.phone_number, body):
        return {'success': True, 'transaction_id': str(tx.id)}

    if self.request.retries < self.max_retries:
        delay = 10 * (2 ** self.request.retries)  # 10, 20, 40 seconds
        logger.warning(f'Retrying transfer notification {tx.id} in {delay}s (attempt {self.request.retries + 1})')
        raise self.retry(countdown=delay)

    logger.error(f'Transfer notification gave up for {tx.id}')
    return {'success': False, 'transaction_id': str(tx.id), 'error': 'SMS delivery failed'}
