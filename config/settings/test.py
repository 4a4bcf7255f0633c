"""
Settings used by the test suite.
"""
from config.settings.base import *  # noqa: F401, F403
from config.settings.base import REST_FRAMEWORK

DEBUG = False

ALLOWED_HOSTS = ['testserver']

SECRET_KEY = 'chillbill-test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'chillbill-test-cache',
    }
}

BILL_DEFAULT_CURRENCY = 'VND'
BILL_MAX_PARTICIPANTS = 1000

# No request throttling in tests
REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_CLASSES': [],
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'WARNING',
    },
}
