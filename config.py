import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# === Server ===
BACKEND_HOST = os.getenv("BACKEND_HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
BASE_URL = os.getenv("BASE_URL", "http://localhost:8000").rstrip("/")
API_BASE_PATH = "/api"

IS_PRODUCTION = ENVIRONMENT == "production"
IS_DEVELOPMENT = ENVIRONMENT == "development"

# === Frontend allowed origins (CORS) ===
ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o.strip()]

# === Reverse proxies trusted for X-Forwarded-For ===
FORWARDED_ALLOW_IPS = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")

# === Storage ===
# Read at call time by the stores, so tests can point them at a temp dir.
DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "data"))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads"))

# === Logging ===
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_REQUESTS = os.getenv("LOG_REQUESTS", str(not IS_PRODUCTION)).lower() == "true"


class Config:
    """Central configuration for the Rentify backend"""

    # === Sessions ===
    SESSION_SECRET = os.getenv("SESSION_SECRET", "your-secret-key-here-change-in-production")
    SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", 24 * 60 * 60))

    # === Admin credentials ===
    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "password123")
    ADMIN_PASSWORD_HASH = os.getenv("ADMIN_PASSWORD_HASH")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@rentalplatform.com")

    # === Login rate limiting ===
    MAX_LOGIN_ATTEMPTS = 5
    LOGIN_WINDOW_SECONDS = 15 * 60

    # === Twilio ===
    TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER")
    SUPPORT_PHONE = os.getenv("SUPPORT_PHONE") or TWILIO_PHONE_NUMBER

    # === Voice ===
    VOICE_NAME = os.getenv("VOICE_NAME", "Polly.Amy")
    VOICE_LANGUAGE = os.getenv("VOICE_LANGUAGE", "en-ZA")

    # === AI Model Settings ===
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
    AI_CONFIDENCE_THRESHOLD = float(os.getenv("AI_CONFIDENCE_THRESHOLD", 0.5))
    MAX_CONVERSATION_HISTORY = 6
    MAX_TOKENS = int(os.getenv("MAX_TOKENS", 500))
    TEMPERATURE = float(os.getenv("TEMPERATURE", 0.7))

    # === Email (Resend) ===
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    RESEND_API_URL = "https://api.resend.com/emails"
    EMAIL_FROM = os.getenv("EMAIL_FROM", "Rentify <onboarding@resend.dev>")
    OWNER_EMAIL = os.getenv("OWNER_EMAIL")

    # === Uploads ===
    MAX_UPLOAD_SIZE = 5 * 1024 * 1024

    # === Public pages linked from lead conversations ===
    @property
    def LISTINGS_URL(self):
        return f"{BASE_URL}/our-properties.html"

    @property
    def VIEWING_URL(self):
        return f"{BASE_URL}/contact.html"

    @property
    def APPLICATION_URL(self):
        return f"{BASE_URL}/application.html"

    @property
    def VOICE_GATHER_URL(self):
        return f"{BASE_URL}{API_BASE_PATH}/webhook/voice/gather"

    @property
    def VOICE_WEBHOOK_URL(self):
        return f"{BASE_URL}{API_BASE_PATH}/webhook/voice"


settings = Config()


# Debug check when running directly
if __name__ == "__main__":
    print("✅ Config loaded successfully")
    print(f"Environment: {ENVIRONMENT}")
    print(f"Data dir: {DATA_DIR}")
    print(f"Allowed Origins: {ALLOWED_ORIGINS}")
    print(f"Twilio: {'✔ Loaded' if Config.TWILIO_ACCOUNT_SID else '❌ Missing'}")
    print(f"GROQ API Key: {'✔ Loaded' if Config.GROQ_API_KEY else '❌ Missing'}")
    print(f"Resend API Key: {'✔ Loaded' if Config.RESEND_API_KEY else '❌ Missing'}")
