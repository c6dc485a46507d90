import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# JWT Config
DEFAULT_JWT_SECRET = "dev-secret-change"
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Product images
PRODUCT_ASSETS_DIR = os.getenv("PRODUCT_ASSETS_DIR", os.path.join("Assets", "Products"))
PRODUCT_IMAGE_PREFIX = "product-"
MAX_PRODUCT_IMAGES = 5
ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))

