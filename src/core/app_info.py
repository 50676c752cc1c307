APP_NAME = "py-baton"
__version__ = "0.1.0"
