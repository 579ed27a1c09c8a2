import platform
import time
from typing import Any, Dict

from course_registry.config import get_settings
from course_registry.metrics import BUILD_VERSION, GIT_SHA


async def health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "ts": time.time(),
        "env": {
            "store_backend": settings.course_store_backend,
            "index_key": settings.course_index_key,
        },
        "runtime": {
            "python": platform.python_version(),
        },
    }
