"""
Runtime configuration for the bulk domain checker.

Every setting comes from an environment variable with a sensible default, so
the app runs unconfigured locally and can be tuned on the hosting platform.
"""

import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

SECRET_KEY = os.environ.get('SECRET_KEY', 'bulk_domain_checker_dev_key')
PORT = int(os.environ.get('PORT', 5000))

DEFAULT_EXTENSIONS = ['.net', '.co', '.co.in', '.in', '.us']

CHECK_METHODS = ('dns', 'http', 'vote')


def parse_extensions(value):
    """Turn a comma-separated string into a list of dotted extensions."""
    extensions = []
    for ext in value.split(','):
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = f'.{ext}'
        if ext not in extensions:
            extensions.append(ext)
    return extensions


EXTENSIONS = parse_extensions(os.environ.get('DOMAIN_EXTENSIONS', '')) or list(DEFAULT_EXTENSIONS)

CHECK_METHOD = os.environ.get('CHECK_METHOD', 'dns').lower()
if CHECK_METHOD not in CHECK_METHODS:
    CHECK_METHOD = 'dns'

# Soft per-probe limits, in seconds
DNS_TIMEOUT = float(os.environ.get('DNS_TIMEOUT', 3.0))
HTTP_TIMEOUT = float(os.environ.get('HTTP_TIMEOUT', 5.0))
WHOIS_TIMEOUT = float(os.environ.get('WHOIS_TIMEOUT', 5.0))

MAX_WORKERS = int(os.environ.get('MAX_WORKERS', 10))
BATCH_SIZE = int(os.environ.get('BATCH_SIZE', 20))
BATCH_DELAY = float(os.environ.get('BATCH_DELAY', 0.5))

MAX_BASE_NAMES = int(os.environ.get('MAX_BASE_NAMES', 100))

# 0 disables rate limiting
RATE_LIMIT_REQUESTS = int(os.environ.get('RATE_LIMIT_REQUESTS', 10))
RATE_LIMIT_WINDOW = float(os.environ.get('RATE_LIMIT_WINDOW', 60))

LOG_DIR = os.environ.get('LOG_DIR', os.path.join(BASE_DIR, 'logs'))
