"""Dispatch error kinds."""

from __future__ import annotations


class DispatchError(ValueError):
    """Base class for errors raised while dispatching an order group."""


class NotFound(DispatchError):
    """The order group or one of its referenced records does not exist."""


class EmptyGroup(DispatchError):
    """The order group contains no orders."""


class InvalidGeometry(DispatchError):
    """A pickup or delivery coordinate is missing or out of range."""


class NoAvailableCouriers(DispatchError):
    """No courier can take the work; the whole run is aborted."""
