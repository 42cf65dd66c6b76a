"""BaseService: foundation for all blogctl services.

Every service receives a :class:`Site` at construction time.  The Site
provides document loading, the derived index, and transactional writes.
Services own their transaction boundaries via ``self._site.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from blogctl.config.settings import BlogSettings
    from blogctl.infrastructure.site import Site


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class CreateService(BaseService):
            def new_post(self, title: str, ...) -> ServiceResult:
                with self._site.transaction() as txn:
                    ...
    """

    def __init__(self, site: Site) -> None:
        self._site = site

    @property
    def _settings(self) -> BlogSettings:
        return self._site.settings
