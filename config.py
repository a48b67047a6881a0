import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./billing.db")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = data.get("API_RELOAD", False)
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Payment processor (Stripe)
    STRIPE_SECRET_KEY = data.get("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = data.get("STRIPE_WEBHOOK_SECRET", "")
    CHECKOUT_SUCCESS_URL = data.get("CHECKOUT_SUCCESS_URL", "http://localhost:3000/billing?checkout=success")
    CHECKOUT_CANCEL_URL = data.get("CHECKOUT_CANCEL_URL", "http://localhost:3000/billing?checkout=cancel")
    CHECKOUT_TIMEOUT_SECONDS = data.get("CHECKOUT_TIMEOUT_SECONDS", 10)
    PROCESSOR_TIMEOUT_SECONDS = data.get("PROCESSOR_TIMEOUT_SECONDS", 10)
    BILLING_CURRENCY = data.get("BILLING_CURRENCY", "usd")

    # Domain events
    EVENT_WEBHOOK_URL = data.get("EVENT_WEBHOOK_URL", None)

    # Waiting for a checkout to be confirmed
    PLAN_CHANGE_POLL_TIMEOUT_SECONDS = data.get("PLAN_CHANGE_POLL_TIMEOUT_SECONDS", 30)
    PLAN_CHANGE_POLL_INITIAL_DELAY_SECONDS = data.get("PLAN_CHANGE_POLL_INITIAL_DELAY_SECONDS", 1)
