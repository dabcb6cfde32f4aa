# config.py
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE = "https://api.figma.com/v1"


def get_api_key():
    return os.getenv("FIGMA_API_KEY")


def get_api_base() -> str:
    return os.getenv("FIGMA_API_BASE", DEFAULT_API_BASE).rstrip("/")


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_transport() -> str:
    return os.getenv("MCP_TRANSPORT", "stdio")


def get_host() -> str:
    return os.getenv("HOST", "127.0.0.1")


def get_port() -> int:
    return int(os.getenv("PORT", "3333"))
