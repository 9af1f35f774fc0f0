# backend/wsgi.py
from meatmaster import create_app

app = create_app()
