from __future__ import annotations

import os
from typing import Optional

from fastapi import Header, HTTPException

from packages.core.storage.sqlite import SQLiteNoteStore


DEFAULT_DB_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "data", "mynote.db"))


def db_path() -> str:
    return os.getenv("MYNOTE_DB_PATH", DEFAULT_DB_PATH)


def default_store() -> SQLiteNoteStore:
    return SQLiteNoteStore(db_path=db_path())


def current_user_id(x_user_id: Optional[int] = Header(default=None)) -> int:
    # Set by the authenticating proxy in front of the API.
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id
