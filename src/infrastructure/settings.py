import os

from dotenv import load_dotenv

load_dotenv()


DATABASE_URL = os.getenv("DATABASE_URL")
DB_CONNECT_MAX_RETRIES = int(os.getenv("DB_CONNECT_MAX_RETRIES", "30"))
DB_CONNECT_RETRY_DELAY = float(os.getenv("DB_CONNECT_RETRY_DELAY", "1.5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")

MAX_TICKETS_PER_BOOKING = int(os.getenv("MAX_TICKETS_PER_BOOKING", "10"))
BOOKING_FEE_PERCENT = float(os.getenv("BOOKING_FEE_PERCENT", "0"))
PENDING_BOOKING_TTL_MINUTES = int(os.getenv("PENDING_BOOKING_TTL_MINUTES", "30"))
