"""Error taxonomy for health checks.

Every error here is fatal for a whole check run: it describes a broken
schema, parameter declaration or configuration rather than a transient
condition. Per-request probe failures are not exceptions, they are
collected as ``ProbeOutcome`` values.
"""


class HealthCheckError(Exception):
    """Base class for all fatal health check errors."""


class SchemaError(HealthCheckError):
    """The API description cannot be used."""


class SchemaNotFoundError(SchemaError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"File not found at: {path}")


class SchemaParseError(SchemaError):
    pass


class UnsupportedSchemeError(SchemaError):
    def __init__(self, schemes: list[str]):
        self.schemes = schemes
        super().__init__(f"Multiple schemes not supported: {', '.join(schemes)}")


class UnsupportedContentTypeError(SchemaError):
    def __init__(self, method: str, path: str, content_types: list[str]):
        self.content_types = content_types
        super().__init__(
            f"Multiple content types not supported. Path: {method} {path}, "
            f"content types: {', '.join(content_types)}"
        )


class ParameterError(HealthCheckError):
    """A parameter declaration cannot be turned into a request value."""


class UnresolvableParameterError(ParameterError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Cannot extract value for parameter: {name}")


class MissingPathPlaceholderError(ParameterError):
    def __init__(self, path: str, name: str):
        self.path = path
        self.name = name
        super().__init__(
            f"No entry in API path for path parameter. Path: {path}, parameter name: {name}"
        )


class UnsupportedBodyLocationError(ParameterError):
    def __init__(self, path: str, name: str):
        self.path = path
        self.name = name
        super().__init__(f"Parameters in body not supported. Path: {path}, parameter name: {name}")


class UnsupportedParameterLocationError(ParameterError):
    def __init__(self, path: str, name: str, location: str):
        self.location = location
        super().__init__(
            f"Unsupported parameter location '{location}'. Path: {path}, parameter name: {name}"
        )


class ConfigError(HealthCheckError):
    """The monitor configuration is missing or invalid."""
