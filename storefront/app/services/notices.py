# storefront/app/services/notices.py
from __future__ import annotations

import logging
from typing import List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Variant = Literal["default", "success", "destructive"]


class Notice(BaseModel):
    """A short-lived toast shown by the browser after an action."""
    title: str
    description: Optional[str] = None
    variant: Variant = "default"


class Notifier:
    """Collects the notices produced while serving one request."""

    def __init__(self) -> None:
        self._notices: List[Notice] = []

    def info(self, title: str, description: Optional[str] = None) -> None:
        self._notices.append(Notice(title=title, description=description))

    def success(self, title: str, description: Optional[str] = None) -> None:
        self._notices.append(Notice(title=title, description=description, variant="success"))

    def error(self, title: str, description: Optional[str] = None) -> None:
        logger.info("notice: %s: %s", title, description)
        self._notices.append(Notice(title=title, description=description, variant="destructive"))

    @property
    def notices(self) -> List[Notice]:
        return list(self._notices)

    def drain(self) -> List[Notice]:
        out, self._notices = self._notices, []
        return out
