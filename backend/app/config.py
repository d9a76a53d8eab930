# config.py
# Backend settings, read once from the environment (.env supported).

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("ITEMFLOW_DATA_DIR", str(BASE_DIR / "data")))

# opaque per-session credentials accepted by the API
API_TOKENS = {t.strip() for t in os.getenv("ITEMFLOW_API_TOKENS", "dev-token").split(",") if t.strip()}

CAD_FEE = float(os.getenv("CAD_FEE", "60.00"))
CAD_REVISION_ROUNDS = int(os.getenv("CAD_REVISION_ROUNDS", "3"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
