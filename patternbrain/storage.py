from __future__ import annotations

import json
import logging
import os
from typing import Dict, List, Optional

import numpy as np
import redis

logger = logging.getLogger(__name__)


class NumpyEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.generic):
            return obj.item()
        return json.JSONEncoder.default(self, obj)


class StateStorage:
    """
    Persistence for exported engine snapshots, one blob per session.
    - If a Redis URL is given (or REDIS_URL is set), blobs live in Redis.
    - Otherwise they are JSON files under state_dir.
    Keys:
      patternbrain:sessions (set) -> session ids
      patternbrain:session:<sid> -> JSON string
    """

    def __init__(self, state_dir: str, redis_url: Optional[str] = None):
        self.state_dir = state_dir
        self._redis = None
        url = redis_url if redis_url is not None else os.getenv("REDIS_URL")
        if url:
            self._redis = redis.from_url(url, decode_responses=True)
            logger.info("Session snapshots stored in Redis")
        else:
            os.makedirs(self.state_dir, exist_ok=True)

    # ---------------- Filesystem helpers ----------------
    @staticmethod
    def _check_sid(sid: str) -> str:
        safe = "".join(c for c in sid if c.isalnum() or c in ("-", "_"))
        if not sid or safe != sid:
            raise ValueError(f"invalid session id {sid!r}: use letters, digits, - and _")
        return sid

    def _session_path(self, sid: str) -> str:
        return os.path.join(self.state_dir, f"session_{self._check_sid(sid)}.json")

    # ---------------- Redis helpers ----------------
    def _k_session(self, sid: str) -> str:
        return f"patternbrain:session:{self._check_sid(sid)}"

    def _k_sessions_set(self) -> str:
        return "patternbrain:sessions"

    # ---------------- Public API ----------------
    def save_session(self, sid: str, blob: Dict) -> None:
        data = json.dumps(blob, cls=NumpyEncoder)
        if self._redis is not None:
            self._redis.set(self._k_session(sid), data)
            self._redis.sadd(self._k_sessions_set(), sid)
            return
        with open(self._session_path(sid), "w", encoding="utf-8") as f:
            f.write(data)

    def load_session(self, sid: str) -> Optional[Dict]:
        if self._redis is not None:
            s = self._redis.get(self._k_session(sid))
            return json.loads(s) if s is not None else None
        p = self._session_path(sid)
        if not os.path.exists(p):
            return None
        with open(p, "r", encoding="utf-8") as f:
            return json.load(f)

    def delete_session(self, sid: str) -> bool:
        if self._redis is not None:
            self._redis.srem(self._k_sessions_set(), sid)
            return bool(self._redis.delete(self._k_session(sid)))
        p = self._session_path(sid)
        if not os.path.exists(p):
            return False
        os.remove(p)
        return True

    def list_sessions(self) -> List[str]:
        if self._redis is not None:
            return sorted(self._redis.smembers(self._k_sessions_set()) or [])
        out: List[str] = []
        for name in os.listdir(self.state_dir):
            if name.startswith("session_") and name.endswith(".json"):
                out.append(name[len("session_"):-len(".json")])
        return sorted(out)
