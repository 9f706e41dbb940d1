"""Celery worker configuration."""

from celery import Celery

from storyboard_engine.config import settings
from storyboard_engine.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "storyboard_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,  # 30 minutes max
    task_soft_time_limit=1740,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "pipeline.generate_project": {"queue": "high"},
        "images.generate_all": {"queue": "images"},
        "images.regenerate": {"queue": "images"},
        "video.generate_scene": {"queue": "video"},
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["storyboard_engine.jobs"])
