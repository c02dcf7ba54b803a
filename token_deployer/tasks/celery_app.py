# token_deployer/tasks/celery_app.py
"""
Worker de Celery:  celery -A token_deployer.tasks.celery_app.celery worker
"""
import os
import logging
from celery import Celery

logger = logging.getLogger(__name__)


def make_celery(flask_app) -> Celery:
    """
    Crea Celery con la config de la app Flask y ejecuta cada task
    dentro del app_context (las tasks usan db.session).
    """
    celery_app = Celery("token_deployer")

    broker_url = flask_app.config.get("CELERY_BROKER_URL")
    result_backend = flask_app.config.get("CELERY_RESULT_BACKEND") or broker_url

    celery_app.conf.update(
        broker_url=broker_url,
        result_backend=result_backend,
        task_ignore_result=False,
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone=os.getenv("TZ", "UTC"),
        enable_utc=True,
    )

    TaskBase = celery_app.Task

    class ContextTask(TaskBase):
        def __call__(self, *args, **kwargs):
            with flask_app.app_context():
                return TaskBase.__call__(self, *args, **kwargs)

    celery_app.Task = ContextTask
    celery_app.set_default()

    try:
        conn = celery_app.connection()
        conn.ensure_connection(max_retries=1)
        logger.info("Celery conectado a broker: %s", broker_url)
    except Exception as e:
        logger.error("Error conectando a Celery broker (%s): %s", broker_url, e)

    with flask_app.app_context():
        from token_deployer.tasks import receipt_tasks  # noqa: F401  registra las tasks

    return celery_app


def _init():
    from token_deployer import create_app
    return make_celery(create_app(os.getenv("FLASK_ENV", "development")))


celery = _init()
