"""WSGI entrypoint for Gunicorn.

Temporary card/draw state lives in process memory, so use one worker and
scale with threads:
  gunicorn -w 1 --threads 8 -b 0.0.0.0:8000 wsgi:app
"""

from bingo import create_app

app = create_app()
