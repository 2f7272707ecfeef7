"""Device-local settings kept outside the shared snapshot."""

import json
import logging

logger = logging.getLogger(__name__)

ACTOR_KEY = "home-stock-username"


class DeviceSettings:
    """Settings that belong to this device only, such as the actor label."""

    def __init__(self, data_store):
        self.data_store = data_store

    @property
    def actor(self) -> str:
        """Label stamped into updatedBy on every save. Empty when unset."""
        raw = self.data_store.get(ACTOR_KEY)
        if not raw:
            return ""
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        return value.strip() if isinstance(value, str) else ""

    @actor.setter
    def actor(self, name: str) -> None:
        name = name.strip()
        if name:
            self.data_store.set(ACTOR_KEY, json.dumps(name, ensure_ascii=False))
        else:
            self.data_store.remove(ACTOR_KEY)
        logger.info("Device actor set to %r", name)
