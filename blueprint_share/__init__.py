"""Blueprint Share: share studied blueprints with clan, friends and team."""

from .plugin import BlueprintSharePlugin, build_plugin
from .service import BlueprintShareService

__all__ = ["BlueprintSharePlugin", "BlueprintShareService", "build_plugin"]
