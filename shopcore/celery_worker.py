# shopcore/celery_worker.py
from celery import Celery

from shopcore.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shopcore",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "shopcore.services.cart_cleanup",
)

celery_app.conf.timezone = "UTC"
celery_app.conf.task_acks_late = True
