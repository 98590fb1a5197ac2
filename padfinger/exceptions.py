"""Exception types raised by the engine."""


class PerformabilityError(Exception):
    """Base class for engine errors."""


class UnsupportedSolverModeError(PerformabilityError, RuntimeError):
    """A synchronous solve was requested from an async-only strategy."""

    def __init__(self, solver_name: str):
        self.solver_name = solver_name
        super().__init__(
            f"Solver '{solver_name}' does not support synchronous solving; "
            f"use solve_async() instead"
        )


class UnknownSolverTypeError(PerformabilityError, ValueError):
    """The requested solver type is not one of the known strategies."""

    def __init__(self, solver_type, available=()):
        self.solver_type = solver_type
        message = f"Unknown solver type: {solver_type!r}"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)
