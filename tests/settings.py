"""Django settings for django-epharmacy tests."""

import os
import tempfile

SECRET_KEY = 'test-secret-key-do-not-use-in-production'

DEBUG = True

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django_epharmacy',
]

# File-backed test database so threads in the concurrency tests share it
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'TEST': {
            'NAME': os.path.join(tempfile.gettempdir(), 'test_django_epharmacy.sqlite3'),
        },
        'OPTIONS': {
            'timeout': 20,
        },
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {},
    },
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
DEFAULT_FROM_EMAIL = 'pharmacy@clinic.test'

MEDIA_ROOT = os.path.join(tempfile.gettempdir(), 'django_epharmacy_media')
MEDIA_URL = '/media/'

PHARMACY_NOTIFICATION_GATEWAY = 'django_epharmacy.notifications.LoggingNotifier'
