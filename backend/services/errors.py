"""
Error types raised by the media mix engine.

Arithmetic degeneracies (zero investment, zero variance, empty windows) are
resolved to safe defaults where they occur. Only structural problems with the
inputs are raised to the caller.
"""


class MixEngineError(Exception):
    """Base class for media mix engine errors."""


class MissingDataError(MixEngineError):
    """Raised when a query runs before any records have been loaded."""


class ChannelMismatchError(MixEngineError):
    """Raised when the investment and contribution tables share no channels."""


class InfeasibleBudgetError(MixEngineError):
    """Raised when the total budget cannot cover every channel's floor."""

    def __init__(self, total_budget: float, minimum_budget: float):
        self.total_budget = total_budget
        self.minimum_budget = minimum_budget
        super().__init__(
            f"Total budget {total_budget:,.2f} is below the minimum of "
            f"{minimum_budget:,.2f} needed to keep every channel at its floor"
        )


class SourceFormatError(MixEngineError):
    """Raised when a data source does not have the expected layout."""
