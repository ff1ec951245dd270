from v0fetch.core.env import _env_positive_int

__version__ = "0.3.1"

DEFAULT_API_BASE = "https://api.v0.dev/v1"
API_KEYS_URL = "https://v0.dev/chat/settings/keys"
CHAT_URL_BASE = "https://v0.app/chat"
CHAT_HOSTS = ("v0.app", "v0.dev", "www.v0.app", "www.v0.dev")

DESIGNS_DIR = "designs"
SOURCE_DIR = "v0-source"
MANIFEST_NAME = "manifest.json"

STATUS_COMPLETED = "completed"
PLACEHOLDER_MARKER = "GENERATING"

PAGE_LIMIT = _env_positive_int("V0FETCH_PAGE_LIMIT", 100)
MAX_ZIP_MEMBERS = _env_positive_int("V0FETCH_MAX_ZIP_MEMBERS", 100_000)
MAX_ZIP_UNCOMPRESSED_BYTES = _env_positive_int(
    "V0FETCH_MAX_ZIP_UNCOMPRESSED_BYTES", 2 * 1024 * 1024 * 1024
)
