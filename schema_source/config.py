import os

from schema_server.config import int_env

# Document source: a JSON file, or the built-in sample catalog when unset
SOURCE_SCHEMA_FILE = os.getenv("SOURCE_SCHEMA_FILE") or None
SOURCE_RELOAD_SEC  = int_env("SOURCE_RELOAD_SEC", 10, min_value=1)   # mtime check interval

# Fault injection
FAULT_500_PCT    = int_env("FAULT_500_PCT", 0, min_value=0, max_value=100)  # clamp to [0,100]
FAULT_SLOW_MS    = int_env("FAULT_SLOW_MS", 0, min_value=0)                 # no negative delays

# Server bind & logging
BIND_HOST = os.getenv("BIND_HOST", "0.0.0.0")
PORT      = int_env("PORT", 9001, min_value=1, max_value=65535)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
