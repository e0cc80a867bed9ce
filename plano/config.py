"""Runtime settings, read from the environment with sensible defaults."""
import os

API_URL = os.environ.get("PLANO_API_URL", "http://127.0.0.1:8080")

# No timeout unless one is configured
_timeout = os.environ.get("PLANO_API_TIMEOUT")
API_TIMEOUT = float(_timeout) if _timeout else None

LOG_LEVEL = os.environ.get("PLANO_LOG_LEVEL", "INFO")

# Floor plan canvas, in pixels
FLOOR_WIDTH = 800
FLOOR_HEIGHT = 600

# Auto-arrange grid
GRID_MARGIN = 20
TABLE_SIZE = 80

MIN_TABLE_SIZE = 20
RESIZE_HANDLE = 6  # px from an edge that starts a resize instead of a drag

NOTIFY_DELAY_MS = 3000

SHAPES = ("cuadrado", "circulo")
