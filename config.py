import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# fal.ai Configuration
FAL_KEY = os.getenv("FAL_KEY")
FAL_QUEUE_URL = os.getenv("FAL_QUEUE_URL", "https://queue.fal.run")
FAL_STORAGE_URL = os.getenv("FAL_STORAGE_URL", "https://rest.alpha.fal.ai")

# API Timeout Configuration
FAL_REQUEST_TIMEOUT = float(os.getenv("FAL_REQUEST_TIMEOUT", "30"))  # seconds
FAL_POLL_INTERVAL = float(os.getenv("FAL_POLL_INTERVAL", "1.0"))  # seconds
FAL_MAX_WAIT = float(
    os.getenv("FAL_MAX_WAIT", "300")
)  # seconds to wait for a queued generation before giving up

# Proxy Server Configuration
SERVER_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8080"))
MAX_UPLOAD_BYTES = int(
    os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024))
)  # request body cap for data URL uploads

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() == "true"
LOG_FILE_PATH = os.getenv("LOG_FILE_PATH", "logs/imagegen_studio.log")
