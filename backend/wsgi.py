# backend/wsgi.py
from uniforms import create_app

app = create_app()
