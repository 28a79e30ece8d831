#!/usr/bin/env python3
"""FormGen structured exception hierarchy.

Parsing of legacy documents never raises; these exceptions cover blocking
validation, configuration problems, and internal layout failures.

Usage:
    from formgen.errors import GenerationValidationError

    raise GenerationValidationError(["Primary record name is required"])
"""


class FormGenError(Exception):
    """Base exception for all FormGen errors.

    Attributes:
        component: Name of the component that raised (e.g. "schema").
    """

    def __init__(self, message: str, component: str = ""):
        super().__init__(message)
        self.component = component


class GenerationValidationError(FormGenError):
    """Blocking validation failure: no artifact is generated.

    Attributes:
        errors: Every problem found, in detection order.
    """

    def __init__(self, errors, component: str = "pipeline"):
        self.errors = list(errors)
        message = "; ".join(self.errors) or "Generation inputs are invalid"
        super().__init__(message, component=component)


class ConfigurationError(FormGenError):
    """Missing or invalid configuration."""

    def __init__(self, message: str, config_key: str = ""):
        super().__init__(message, component="config")
        self.config_key = config_key


class LayoutError(FormGenError):
    """Layout engine could not place the graph.

    Never escapes ``compute_layout``; the caller falls back to origin
    positions for the affected nodes.
    """

    def __init__(self, message: str, node_ids=None):
        super().__init__(message, component="layout")
        self.node_ids = list(node_ids or [])
