import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

DB_DIR = Path(os.getenv("DB_DIR", "./data"))
DB_PATH = DB_DIR / os.getenv("DB_FILE", "ship_maintenance.sqlite")


def get_connection(db_path: Optional[Union[str, Path]] = None):
    path = Path(db_path or DB_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(path, check_same_thread=False)
    con.row_factory = sqlite3.Row
    return con


@contextmanager
def connect(db_path: Optional[Union[str, Path]] = None):
    con = get_connection(db_path)
    try:
        yield con
    finally:
        con.close()
