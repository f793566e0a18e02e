"""composer: install docker-compose applications from Jinja2 templates."""

__version__ = "0.1.0"
