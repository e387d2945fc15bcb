"""Settings for production deployments."""

from server.settings.components import config

DEBUG = False

SECRET_KEY = config('DJANGO_SECRET_KEY')

ALLOWED_HOSTS = config(
    'DOMAIN_NAME',
    cast=lambda hosts: [host.strip() for host in hosts.split(',')],
)

EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
