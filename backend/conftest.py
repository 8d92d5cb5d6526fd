# Test-time defaults; set before consultly.core.config builds its Settings.
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GOOGLE_CALENDAR_FAKE", "true")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
