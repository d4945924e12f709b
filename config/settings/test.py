"""Test settings for travelbook project.

Runs against an in-memory SQLite database with Celery executing tasks
inline. Remote services are never reached: tests patch the HTTP session,
the Stripe client or the repositories they exercise.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

REMOTE_STORE_URL = 'https://store.test'
REMOTE_STORE_ANON_KEY = 'anon-key'
REMOTE_STORE_SERVICE_KEY = 'service-key'

STRIPE_SECRET_KEY = 'sk_test_dummy'

REALTIME_WEBHOOK_SECRET = 'webhook-secret'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

# The test client touches the session store on logout; use a backend that
# needs no session model since django.contrib.sessions is not installed.
SESSION_ENGINE = 'django.contrib.sessions.backends.signed_cookies'
