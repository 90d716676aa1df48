import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _int_env(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


class Config:
    """Settings read from the environment (or a .env file next to the backend)."""

    def __init__(self, **overrides):
        self.MYSQL_HOST = os.getenv('MYSQL_HOST', 'localhost')
        self.MYSQL_PORT = _int_env('MYSQL_PORT', 3306)
        self.MYSQL_USER = os.getenv('MYSQL_USER', 'root')
        self.MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD', '')
        self.MYSQL_DB = os.getenv('MYSQL_DB', 'mydatabase')
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
        self.DEFAULT_PAGE_SIZE = _int_env('DEFAULT_PAGE_SIZE', 50)
        self.DIAGRAM_WIDTH = _int_env('DIAGRAM_WIDTH', 800)
        self.DIAGRAM_HEIGHT = _int_env('DIAGRAM_HEIGHT', 500)
        for key, value in overrides.items():
            setattr(self, key, value)

    def as_dict(self):
        return {key: value for key, value in vars(self).items() if key.isupper()}
