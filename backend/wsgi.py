# backend/wsgi.py
from studiopos import create_app

app = create_app()
