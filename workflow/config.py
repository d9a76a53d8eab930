# config.py
# Environment settings for the workflow core and its backend client.

import os
from dotenv import load_dotenv

load_dotenv()

API_URL = os.getenv("API_URL", "http://localhost:5000")
API_TOKEN = os.getenv("API_TOKEN")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
CAD_FEE = float(os.getenv("CAD_FEE", "60.00"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
