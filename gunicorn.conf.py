import multiprocessing
import os

wsgi_app = "tappio:create_app()"
workers = int(os.environ.get("WEB_CONCURRENCY", (multiprocessing.cpu_count() * 2) + 1))
threads = 2
worker_class = "gthread"
# create_app() runs create_all/ensure_admin once in the master
preload_app = True
bind = f":{os.environ.get('PORT', '8000')}"
# Heroku/Render style proxy headers
forwarded_allow_ips = "*"
timeout = 60
keepalive = 75
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
