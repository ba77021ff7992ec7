"""
Celery app for Veiculo Track.

Runs the order notification e-mails and the periodic closing of expired
evaluations (``CELERY_BEAT_SCHEDULE`` in settings). Settings are read from
Django with the ``CELERY_`` prefix, so ``DJANGO_SETTINGS_MODULE`` must be
set before the app is created.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("veiculo_track")
app.config_from_object("django.conf:settings", namespace="CELERY")

# modules.orders.tasks
app.autodiscover_tasks()
