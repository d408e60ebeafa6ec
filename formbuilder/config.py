import os
from dotenv import load_dotenv

load_dotenv()

# Persistence endpoint; leave empty to run in offline mode only.
API_URL = os.getenv("FORMBUILDER_API_URL", "").strip()

# Load/save requests are aborted after this many seconds.
REQUEST_TIMEOUT_S = float(os.getenv("FORMBUILDER_TIMEOUT_S", "10"))

LOG_LEVEL = os.getenv("FORMBUILDER_LOG_LEVEL", "INFO").upper()

# Number of undoable edits kept by the store.
HISTORY_LIMIT = int(os.getenv("FORMBUILDER_HISTORY_LIMIT", "100"))
