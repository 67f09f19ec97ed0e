"""
Production settings for the Shalom deployment.

Everything not overridden here comes from settings.py; logging and the
django-q2 cluster extend the base dictionaries instead of restating them.
"""
import copy
import os

from .settings import *  # noqa: F401,F403
from .settings import LOGGING as BASE_LOGGING, Q_CLUSTER as BASE_Q_CLUSTER

DEBUG = False

SECRET_KEY = os.environ['SECRET_KEY']

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'shalom.example.com').split(',')
CSRF_TRUSTED_ORIGINS = [f'https://{host}' for host in ALLOWED_HOSTS if host]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.mysql',
        'NAME': os.environ.get('DB_NAME', 'shalom'),
        'USER': os.environ.get('DB_USER', 'shalom'),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '3306'),
        'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', '60')),
        'OPTIONS': {
            'init_command': "SET sql_mode='STRICT_TRANS_TABLES'",
            'charset': 'utf8mb4',
        },
    }
}

STATIC_ROOT = os.environ.get('STATIC_ROOT', '/srv/shalom/staticfiles')

SECURE_SSL_REDIRECT = os.environ.get('SECURE_SSL_REDIRECT', 'False') == 'True'
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_HSTS_SECONDS = int(os.environ.get('SECURE_HSTS_SECONDS', '31536000'))
X_FRAME_OPTIONS = 'DENY'
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_AGE = 60 * 60 * 24 * 14

# Errors from every app also go to a file
LOG_DIR = os.environ.get('LOG_DIR', '/srv/shalom/logs')
LOGGING = copy.deepcopy(BASE_LOGGING)
LOGGING['formatters']['verbose']['format'] = '{levelname} {asctime} {module} {process:d} {message}'
LOGGING['handlers']['file'] = {
    'level': 'ERROR',
    'class': 'logging.FileHandler',
    'filename': os.path.join(LOG_DIR, 'shalom.log'),
    'formatter': 'verbose',
}
LOGGING['root']['handlers'].append('file')
for app_logger in LOGGING['loggers'].values():
    app_logger['handlers'].append('file')
LOGGING['loggers']['django'] = {'handlers': ['file'], 'level': 'ERROR', 'propagate': False}

Q_CLUSTER = {
    **BASE_Q_CLUSTER,
    'name': 'shalom_prod',
    'workers': int(os.environ.get('Q_WORKERS', '1')),
    'label': 'Shalom streak checks',
}

SOPHIA_TIMEOUT = int(os.environ.get('SOPHIA_TIMEOUT', '20'))
