from __future__ import annotations

import secrets
import time


def new_item_id() -> str:
    """
    Generate a client-side item id: "<epoch millis>-<4 hex chars>".

    Unique enough for one user's optimistic adds without coordinating with
    the spreadsheet.
    """
    return f"{int(time.time() * 1000)}-{secrets.token_hex(2)}"
