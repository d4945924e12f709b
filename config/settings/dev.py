"""Development settings for travelbook project.

This module extends the base settings with development specific
configuration, such as enabling debug, allowing all hosts and optionally
running Celery tasks inline. Do not use these settings in production!
"""

import os

from .base import *  # noqa: F401,F403

# Enable debug mode for development
DEBUG = True

# Allow all hosts in development
ALLOWED_HOSTS = ['*']

# Set CELERY_TASK_ALWAYS_EAGER=true to run tasks inline without a broker
CELERY_TASK_ALWAYS_EAGER = os.environ.get("CELERY_TASK_ALWAYS_EAGER", "false").lower() == "true"
