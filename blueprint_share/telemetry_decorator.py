"""Chat command telemetry decorator."""
from __future__ import annotations

import functools
import time
from typing import Any, Callable

from .telemetry import get_telemetry


def track_command(func: Callable) -> Callable:
    """Decorator to track chat command usage and performance.

    Wraps handler methods shaped ``handler(self, caller, *args)``; the
    collector is taken from ``self.telemetry`` when set.
    """

    @functools.wraps(func)
    def wrapper(self, caller, *args, **kwargs) -> Any:
        telemetry = getattr(self, "telemetry", None) or get_telemetry()
        command_name = func.__name__.lstrip("_")
        player_id = str(getattr(caller, "id", "console"))
        start_time = time.time()
        success = False

        try:
            result = func(self, caller, *args, **kwargs)
            success = True
            return result

        except Exception as e:
            telemetry.track_error(
                type(e).__name__,
                command=command_name,
                player_id=player_id,
                error_details=str(e)
            )
            raise

        finally:
            duration_ms = (time.time() - start_time) * 1000
            telemetry.track_command(
                command_name,
                player_id,
                success=success,
                duration_ms=duration_ms,
            )

    return wrapper
