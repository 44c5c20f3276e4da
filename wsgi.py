# wsgi.py
from uniform_api import create_app

application = create_app()
