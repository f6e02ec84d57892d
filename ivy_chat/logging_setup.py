import logging, os, sys

def setup_logging(level_name=None):
    level = getattr(logging, (level_name or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    # Log to stdout
    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(name)s | %(message)s'))
    root.addHandler(sh)

    # Tidy / tune levels regardless of backend
    logging.captureWarnings(True)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    for name in (
        "ivy_chat",                       # whole package
        "ivy_chat.controller",            # turn lifecycle
        "ivy_chat.streaming",             # decode diagnostics
    ):
        logging.getLogger(name).setLevel(level)
    return level
