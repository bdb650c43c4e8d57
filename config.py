import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as nutriconnect.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "nutriconnect.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Consultation grid: 09:00 .. 20:00 inclusive, 30 minute slots
    WORKING_HOURS_START = int(os.getenv("WORKING_HOURS_START", "9"))
    WORKING_HOURS_END = int(os.getenv("WORKING_HOURS_END", "20"))
    SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))

    # Confirmation emails after a booking is created (best effort)
    BOOKING_NOTIFICATIONS_ENABLED = os.getenv("BOOKING_NOTIFICATIONS_ENABLED", "true").lower() == "true"

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BOOKING_NOTIFICATIONS_ENABLED = False
    SMTP_HOST = None
    LOG_LEVEL = "WARNING"
