# kiosk/templating.py
from pathlib import Path

from fastapi.templating import Jinja2Templates

from kiosk import config
from kiosk.utils import format_currency, get_image_path

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["currency"] = format_currency
templates.env.filters["image_path"] = get_image_path
templates.env.globals.update(
    MIN_QTY=config.MIN_QTY,
    MAX_QTY=config.MAX_QTY,
    POLL_INTERVAL_MS=config.POLL_INTERVAL_MS,
    REDIRECT_DELAY_SECONDS=config.REDIRECT_DELAY_SECONDS,
)
