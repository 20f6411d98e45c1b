import multiprocessing
import os

# Gunicorn Production Configuration
#   gunicorn -c gunicorn_config.py
wsgi_app = 'wsgi:app'
bind = f"0.0.0.0:{os.getenv('PORT', '3001')}"

# Each request runs in its own thread with its own DB session; numbering is
# serialised by the database, so any worker count is safe.
workers = int(os.getenv('WEB_CONCURRENCY', multiprocessing.cpu_count() * 2 + 1))
threads = int(os.getenv('GUNICORN_THREADS', 2))
worker_class = 'gthread'

# Uploads are capped by MAX_CONTENT_LENGTH; allow slow mobile clients to finish.
timeout = 120
graceful_timeout = 30
max_requests = 1000
max_requests_jitter = 100
keepalive = 5

# Logging
accesslog = '-'       # Stdout
errorlog = '-'        # Stderr
loglevel = os.getenv('LOG_LEVEL', 'info').lower()
capture_output = True
