"""Application services wired by :class:`~app.services.container.ServiceContainer`."""
