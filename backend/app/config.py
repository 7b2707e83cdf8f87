import os

def _canon_prefix(val):
    """
    Normalize API prefix to always be exactly like '/api':
      - defaults to '/api' when unset/empty
      - ensures a single leading slash
      - removes any trailing slash (except for root)
    """
    val = (val or "/api").strip()
    if not val.startswith("/"):
        val = "/" + val
    if len(val) > 1 and val.endswith("/"):
        val = val[:-1]
    return val


def _env_flag(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


API_PREFIX = _canon_prefix(os.getenv("API_PREFIX"))

# Policy for a double-in earned during a turn that then busts. Matches keep
# the value they were created with.
DEFAULT_REVOKE_DOUBLE_IN_ON_BUST = _env_flag("DEFAULT_REVOKE_DOUBLE_IN_ON_BUST", True)
