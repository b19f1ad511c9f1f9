import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./beolcho.db")

# Firebase Configuration (identity provider)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Cloudflare R2 Configuration (photo storage)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "beolcho")
# Public bucket domain, e.g. https://photos.beolcho.kr - presigned URLs are used when unset
R2_PUBLIC_BASE_URL = os.getenv("R2_PUBLIC_BASE_URL")

# Seed administrator - opt-in, no override when unset
SEED_ADMIN_EMAIL = (os.getenv("SEED_ADMIN_EMAIL") or "").strip().lower() or None

# Kakao Local API (address / keyword search)
KAKAO_REST_API_KEY = os.getenv("KAKAO_REST_API_KEY")
KAKAO_LOCAL_BASE_URL = os.getenv("KAKAO_LOCAL_BASE_URL", "https://dapi.kakao.com").rstrip("/")

# Upload limits
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10MB per photo
MAX_RESERVATION_PHOTOS = int(os.getenv("MAX_RESERVATION_PHOTOS", "5"))

# Frontend origins for CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

# Device-local completion acknowledgments (client side)
COMPLETION_ACK_PATH = os.getenv(
    "COMPLETION_ACK_PATH", str(Path.home() / ".beolcho" / "completion_ack.json")
)
