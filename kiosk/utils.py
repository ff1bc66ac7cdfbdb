# kiosk/utils.py
from datetime import datetime, timezone

CLOUDINARY_BASE_URL = "https://res.cloudinary.com"


def format_currency(amount) -> str:
    """Format a number as USD, e.g. ``format_currency(1500) == "$1,500.00"``."""
    amount = float(amount or 0)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def get_image_path(image_path: str) -> str:
    # Uploaded images are full Cloudinary URLs, seeded ones are local file names
    if image_path.startswith(CLOUDINARY_BASE_URL):
        return image_path
    return f"/products/{image_path}.jpg"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
