# Serve with: gunicorn -c gunicorn.conf.py "authserver:create_app()"
import os

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:3000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
timeout = 30
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app emits JSON lines itself
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Trust proxy headers (pair with USE_PROXYFIX=1 so rate limits key on the client)
forwarded_allow_ips = "*"
