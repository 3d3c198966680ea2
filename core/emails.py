"""
Outgoing email.

Messages are rendered from ``templates/emails`` and sent through Django's
mail framework, so the configured ``EMAIL_BACKEND`` decides whether they go
over SMTP or to the console. Verification mail raises on failure so callers
can decide. Registration notices are best-effort and only log failures.
"""

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


def _send(subject, template, context, recipient):
    html = render_to_string(f'emails/{template}.html', context)
    send_mail(
        subject,
        strip_tags(html),
        settings.DEFAULT_FROM_EMAIL,
        [recipient],
        html_message=html,
    )


def _send_best_effort(subject, template, context, recipient):
    if not recipient:
        logger.warning("No recipient for '%s', skipping", subject)
        return False
    try:
        _send(subject, template, context, recipient)
    except (SMTPException, OSError):
        logger.exception("Failed to send '%s' to %s", subject, recipient)
        return False
    logger.info("Sent '%s' to %s", subject, recipient)
    return True


def send_verification_email(user):
    link = f"{settings.FRONTEND_URL}/auth/verify-email?token={user.email_verification_token}"
    _send(
        'Verify Your Email - OneEvent Registration',
        'verification',
        {'name': user.name or user.email, 'link': link, 'token': user.email_verification_token},
        user.email,
    )
    logger.info("Verification email sent to %s", user.email)


def _registration_context(registration):
    event = registration.event
    return {
        'name': registration.contact_name,
        'event': event,
        'registration': registration,
    }


def send_registration_received(registration):
    return _send_best_effort(
        f"Registration Received: {registration.event.title}",
        'registration_received',
        _registration_context(registration),
        registration.contact_email,
    )


def send_registration_approved(registration):
    return _send_best_effort(
        f"Registration Confirmed: {registration.event.title}",
        'registration_approved',
        _registration_context(registration),
        registration.contact_email,
    )
