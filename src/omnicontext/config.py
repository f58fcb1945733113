## Configuration file for OmniContext
##
## Values here only seed the defaults of the explicit config objects in
## omnicontext.context.types; storages and drivers never read them directly.

import os

from omnicontext.utils.general import _env_flag, _load_json_dict, get_env_float, get_env_int

# Drivers
DEFAULT_DRIVERS = [
    name.strip()
    for name in os.getenv("OMNICONTEXT_DRIVERS", "memory").split(",")
    if name.strip()
]
STORAGE_PATH = os.getenv("OMNICONTEXT_STORAGE_PATH", "omnicontext_storage")
STORE_META = _env_flag("OMNICONTEXT_STORE_META", False)

# Redis cache driver
REDIS_URL = os.getenv("OMNICONTEXT_REDIS_URL", "redis://localhost:6379/0")
CACHE_TTL_SECONDS = get_env_int("OMNICONTEXT_CACHE_TTL")
CACHE_KEY_PREFIX = os.getenv("OMNICONTEXT_CACHE_PREFIX", "omnicontext:")

# SQL drivers
SQL_DSN = os.getenv("OMNICONTEXT_SQL_DSN")
SQL_USER = os.getenv("OMNICONTEXT_SQL_USER")
SQL_PASSWORD = os.getenv("OMNICONTEXT_SQL_PASSWORD")
SQL_HOST = os.getenv("OMNICONTEXT_SQL_HOST")
SQL_PORT = get_env_int("OMNICONTEXT_SQL_PORT")
SQL_DBNAME = os.getenv("OMNICONTEXT_SQL_DBNAME")
SQL_SSLMODE = os.getenv("OMNICONTEXT_SQL_SSLMODE", "require")

# Mongo driver
MONGO_SRV_URI = os.getenv("OMNICONTEXT_MONGO_SRV_URI")
MONGO_DB_NAME = os.getenv("OMNICONTEXT_MONGO_DB_NAME", "omnicontext")

# Truncation
TRUNCATION_STRATEGY = os.getenv("OMNICONTEXT_TRUNCATION_STRATEGY", "simple")
TRUNCATION_STRATEGY_CONFIG = _load_json_dict("OMNICONTEXT_TRUNCATION_CONFIG")
TRUNCATION_THRESHOLD = get_env_int("OMNICONTEXT_TRUNCATION_THRESHOLD", 50000)
TRUNCATION_BUFFER = get_env_float("OMNICONTEXT_TRUNCATION_BUFFER", 0.2)

# Token counting
TOKENIZER_MODEL = os.getenv("OMNICONTEXT_TOKENIZER_MODEL", "gpt-4o-mini")

# IDs
MESSAGE_ID_LENGTH = get_env_int("OMNICONTEXT_MESSAGE_ID_LENGTH", 16)
