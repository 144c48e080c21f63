"""Internal constants shared across the library."""

BASE_URL = "http://localhost:3000"
USER_AGENT = "pysequencer/0.1"

LEFT_ENDPOINT = "/api/sequence"
RIGHT_ENDPOINT = "/api/sequence/right"
LEFT_FLUSH_ENDPOINT = "/api/flush"
RIGHT_FLUSH_ENDPOINT = "/api/flush/right"

DEFAULT_POLL_INTERVAL_MS = 5000
DEFAULT_PAGE_SIZE = 25
SOCKET_TRANSPORTS: tuple[str, ...] = ("websocket", "polling")

ACTION_FLUSH = "flush"

# Column order of the CSV export.
CSV_HEADER: tuple[str, ...] = (
    "id",
    "wagon_no",
    "train_no",
    "side",
    "container_no_1",
    "iso_code_1",
    "container_no_2",
    "iso_code_2",
    "finalizedAt",
    "time",
)
