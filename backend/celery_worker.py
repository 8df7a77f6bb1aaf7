#!/usr/bin/env python3
"""
Celery worker startup script for the Psikotes AI background jobs.

    python celery_worker.py worker -B -Q generation --loglevel=info
"""

from psikotes.core.celery_app import celery_app

if __name__ == '__main__':
    celery_app.start()
