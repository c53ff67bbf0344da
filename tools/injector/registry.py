from __future__ import annotations

import threading
from typing import Dict, List


class StyleRegistry:
    """
    Stylesheet paths discovered during one build session.

    Owned by the host: create one per session (or call reset() at build start)
    and hand it to the pipeline. Safe to share between worker threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # dict keeps first-insertion order
        self._paths: Dict[str, None] = {}

    def add(self, path: str) -> bool:
        """Record path; False if it was already collected."""
        with self._lock:
            if path in self._paths:
                return False
            self._paths[path] = None
            return True

    def list(self) -> List[str]:
        with self._lock:
            return list(self._paths)

    def reset(self) -> None:
        with self._lock:
            self._paths.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._paths
