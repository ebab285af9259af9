# Configuration settings for the Swasth Saathi healthcare portal

# JWT Configuration
SECRET_KEY = "swasth-saathi-secret-key"
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60

# Roles that can log in to a dashboard
VALID_ROLES = ["doctor", "patient", "pharmacist"]

# API Configuration
API_TITLE = "Swasth Saathi Healthcare Portal"
API_VERSION = "1.0.0"
HOST = "127.0.0.1"
PORT = 4000
CORS_ORIGINS = ["*"]

# Logging
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
