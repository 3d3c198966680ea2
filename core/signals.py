from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from . import emails
from .models import Registration


@receiver(post_save, sender=Registration)
def on_registration(sender, instance, created, **kwargs):
    if created:
        # Mail only once the registration row is committed
        transaction.on_commit(lambda: emails.send_registration_received(instance))
