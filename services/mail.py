"""
Best-effort mail notifications through the external mail service webhook
"""
import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5


def send(url: str, payload: dict, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """POST ``payload`` as JSON, True only when the service answers 200.

    Transport errors are logged and reported as False, never raised.
    """
    try:
        response = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        logger.error('Mail-Service request to %s failed: %s', url, e)
        return False

    if response.status_code == 200:
        logger.info('Mail-Service was triggered')
        return True

    logger.error("Mail-Service couldn't get triggered (status %s)", response.status_code)
    return False


def trigger(payload: dict) -> bool:
    """Send ``payload`` to the configured mail service.

    Raises RuntimeError when MAIL_SERVICE_ADDRESS is not set.
    """
    host = current_app.config.get('MAIL_SERVICE_ADDRESS')
    if not host:
        raise RuntimeError('Mail-service host-url is not set')
    timeout = current_app.config.get('MAIL_SERVICE_TIMEOUT', DEFAULT_TIMEOUT)
    return send(host.rstrip('/') + '/send', payload, timeout=timeout)


def notify(payload: dict, category: str, failure_message: str) -> bool:
    """Trigger a mail without ever failing the calling request."""
    try:
        delivered = trigger(payload)
    except RuntimeError as e:
        logger.warning('[%s] %s', category, e)
        return False
    if not delivered:
        logger.warning('[%s] %s', category, failure_message)
    return delivered


# ---------------------- Payloads ----------------------
def verification_mail(user):
    return {'mail': 'welcome', 'to': user.email, 'uuid': user.uuid}


def request_password_mail(email, user_id, otp):
    return {'mail': 'reset_password', 'to': email, 'uuid': user_id, 'otp': otp}


def password_changed_mail(email, name, target_email):
    return {'mail': 'password_changed', 'to': email, 'name': name, 'targetMailAddress': target_email}
