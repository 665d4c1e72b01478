"""BaseService — shared foundation for siteplan services.

Services receive the resolved :class:`SiteplanSettings` at construction
and return :class:`ServiceResult` from every public method. The planning
core they call is pure; services add logging, telemetry and the result
envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from siteplan.config.settings import SiteplanSettings


class BaseService:
    """Abstract base for service-layer classes.

    Usage::

        class PlanService(BaseService):
            def plan(self, descriptors) -> ServiceResult:
                ...
    """

    def __init__(self, settings: SiteplanSettings | None = None) -> None:
        if settings is None:
            from siteplan.config.settings import SiteplanSettings

            settings = SiteplanSettings()
        self._settings = settings
