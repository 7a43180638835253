import logging

ROOT_LOGGER = "voc_records"

def get_logger(name: str = ROOT_LOGGER):
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(logging.INFO)
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        root.addHandler(ch)
    return logging.getLogger(name)
