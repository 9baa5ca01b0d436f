"""Build error taxonomy"""


class MdsiteError(Exception):
    """Base class for all mdsite build errors."""


class MissingInputError(MdsiteError):
    """Source or layouts directory is absent; the build cannot start."""


class RenderError(MdsiteError):
    """A single document could not be rendered or composed."""


class TemplateSyntaxError(RenderError):
    """A template has unbalanced or unknown tags."""

    def __init__(self, message: str, template: str = "<string>"):
        super().__init__(f"{template}: {message}")
        self.template = template


class ConfigError(MdsiteError):
    """A setting names something that does not exist; the build cannot start."""
