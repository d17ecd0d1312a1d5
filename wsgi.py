"""Gunicorn entry point: `gunicorn wsgi:app`."""
from license_console import create_app

app = create_app()

if __name__ == "__main__":
    app.run()
