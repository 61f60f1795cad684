"""Ephemeral project scaffolding: Jinja2 templates plus the tree writer."""

from .generator import EphemeralProject, ProjectScaffolder
from .templates import TemplateRenderer

__all__ = ["EphemeralProject", "ProjectScaffolder", "TemplateRenderer"]
