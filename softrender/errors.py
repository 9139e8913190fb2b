"""Exceptions raised by the collaborators around the render pipeline."""


class SoftRenderError(Exception):
    """Base class for softrender errors."""


class MeshLoadError(SoftRenderError):
    """A mesh file could not be read or parsed."""


class SceneConfigError(SoftRenderError):
    """A scene description is missing fields or holds invalid values."""
