"""Global settings for the scanner. The CLI and web app overwrite these."""

# Print library diagnostics (finder candidates, reader order, ...)
VERBOSE = False

# Global debug output directory (None = disabled)
DEBUG_DIR = None

# Adaptive threshold used when turning a photo into a BinaryBitmap
THRESHOLD_BLOCK = 51
THRESHOLD_C = 10

# Web app
WEB_PORT = 8080
MAX_RESULTS = 3


def log(tag, msg):
    """Print a tagged diagnostic line when VERBOSE is on."""
    if VERBOSE:
        print(f"[{tag}] {msg}", flush=True)
