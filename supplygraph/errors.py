"""Exception hierarchy for supplygraph.

Every error raised by the graph store derives from SupplyGraphError so
callers at an API boundary can catch a single base class.
"""


class SupplyGraphError(Exception):
    """Base class for all graph store errors."""
    pass


class NotFoundError(SupplyGraphError, KeyError):
    """Identifier, package or source is absent from the graph.

    Raised by direct id lookups and by endpoint resolution during ingestion.
    """

    def __str__(self) -> str:
        # KeyError quotes its argument; keep plain messages.
        return str(self.args[0]) if self.args else ""


class TypeMismatchError(SupplyGraphError, TypeError):
    """Identifier exists but refers to a different node variant."""
    pass


class InvalidIDError(SupplyGraphError, ValueError):
    """Identifier string is not a decimal unsigned 32-bit integer."""
    pass


class MissingEndpointError(SupplyGraphError):
    """Package or source endpoint of a link could not be resolved.

    Only strict response building raises this; broad scans drop the record.
    """
    pass


class CardinalityViolationError(SupplyGraphError, ValueError):
    """Tagged input does not select exactly one alternative."""
    pass


class IDSpaceExhaustedError(SupplyGraphError):
    """The node index has handed out every identifier it may allocate."""
    pass


__all__ = [
    "CardinalityViolationError",
    "IDSpaceExhaustedError",
    "InvalidIDError",
    "MissingEndpointError",
    "NotFoundError",
    "SupplyGraphError",
    "TypeMismatchError",
]
