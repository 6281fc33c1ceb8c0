"""Ready-made hub subscribers."""

import logging
from typing import Dict, List, Optional

from ..change_detection.change_detection_models import FieldChange, TrackedField

logger = logging.getLogger(__name__)

DEFAULT_ANNOUNCEMENTS: Dict[str, str] = {
    TrackedField.STREET.value: "Você está na {current}",
    TrackedField.NEIGHBORHOOD.value: "Você entrou no bairro {current}",
    TrackedField.MUNICIPALITY.value: "Bem-vindo a {current}",
    TrackedField.METROPOLITAN_REGION.value: "Você está na {current}",
}


class LoggingChangeSubscriber:
    """Stateful subscriber that turns field changes into announcement lines.

    Stands in for the speech narrator: each change becomes one line such as
    "Você entrou no bairro Glicério", which is logged and kept in
    ``announcements``. A change to an absent value is not announced.
    """

    def __init__(self, templates: Optional[Dict[str, str]] = None):
        self.templates = dict(DEFAULT_ANNOUNCEMENTS)
        if templates:
            self.templates.update(templates)
        self.announcements: List[str] = []

    def update(self, field_name: str, change: FieldChange) -> None:
        if not change.current_value:
            logger.debug(f"Not announcing cleared field {field_name}")
            return

        template = self.templates.get(field_name, "{field}: {current}")
        line = template.format(
            field=field_name,
            current=change.current_value,
            previous=change.previous_value or "",
        )
        self.announcements.append(line)
        logger.info(f"[{change.event_tag}] {line}")
