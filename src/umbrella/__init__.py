"""Umbrella application bootstrapping.

Umbrella wires independently written units into an application using
dependency injection by parameter name. A unit asks for a component simply
by naming a parameter after it; framework-provided components are reached
with a reserved prefix, such as ``_app``.

Key Features:
    - Greedy prefix matching of parameter names against a registry
    - Currying of units whose trailing parameters are not dependencies
    - Nested objects mirroring directories of middlewares, routes and models
    - An ordered initializer pipeline mixing synchronous and callback-style steps
    - Environment-specific initializer variants

Basic Usage:
    >>> from umbrella.session import Umbrella
    >>>
    >>> def on_ready(err, umbrella):
    ...     if err:
    ...         raise err
    >>>
    >>> Umbrella(app, "/srv/site").all({"db": db}, on_ready)

The framework consists of several core modules:
    - signature: Parameter name introspection and explicit declarations
    - registry: The dependency registry and its internal slots
    - injector: Dependency injection and currying
    - directory: Directory-mirroring object construction
    - initializers: The ordered initializer pipeline
    - session: The bootstrap session tying them together
"""
