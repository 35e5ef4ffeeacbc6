# backend/wsgi.py
from bakehouse import create_app

app = create_app()
