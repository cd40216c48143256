import uuid
import datetime

from gpuscope.config import config

_SESSION_ID = None


def generate_session_id():
    ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    rand = uuid.uuid4().hex[:6]
    return f"session_{ts}_{rand}"


def get_session_id():
    """Return the explicit `config.session_id` if set, else a lazily generated one."""
    global _SESSION_ID
    if config.session_id:
        return config.session_id
    if _SESSION_ID is None:
        _SESSION_ID = generate_session_id()
    return _SESSION_ID


def reset_session_id():
    """Start a new recording session id."""
    global _SESSION_ID
    _SESSION_ID = generate_session_id()
    return _SESSION_ID
