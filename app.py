"""Provides application for development purposes."""
from efficio.factory import create_web_app

app = create_web_app()
