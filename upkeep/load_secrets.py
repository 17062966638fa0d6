import os
from dotenv import load_dotenv

load_dotenv()

database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./upkeep.sqlite3")
pepper_data = os.getenv("PEPPER_DATA", "")
log_level = os.getenv("LOG_LEVEL", "INFO")

# Remote function endpoint used by the trigger CLI and FunctionClient
functions_base_url = os.getenv("FUNCTIONS_BASE_URL", "http://localhost:8000")
functions_timeout = float(os.getenv("FUNCTIONS_TIMEOUT", "10"))

# Presence reconciliation targets
presence_user = os.getenv("PRESENCE_USER", "missdeecash")
presence_targets = [
    name.strip()
    for name in os.getenv("PRESENCE_TARGETS", "bona,missdeecash").split(",")
    if name.strip()
]

# 0 disables the in-process sweep; cron/webhook triggers still work
invitation_sweep_interval_sec = int(os.getenv("INVITATION_SWEEP_INTERVAL_SEC", "0"))

retry_max_retries = int(os.getenv("RETRY_MAX_RETRIES", "3"))
retry_base_delay = float(os.getenv("RETRY_BASE_DELAY", "0.7"))
retry_max_delay = float(os.getenv("RETRY_MAX_DELAY", "6.0"))

if __name__ == "__main__":
    print(database_url, functions_base_url, presence_user, presence_targets)
