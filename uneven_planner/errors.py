class PlanningError(Exception):
    """Base class for everything the plan manager raises."""


class InvalidConfigurationError(PlanningError):
    """A manager parameter is outside its allowed range."""


class InsufficientDataError(PlanningError):
    """The reference path has too few samples to estimate headings."""


class EmptyPathError(PlanningError):
    """The path source found no reference path."""


class OptimizerFailure(PlanningError):
    """The trajectory optimizer could not produce a trajectory."""


class PersistenceError(PlanningError):
    """The result file could not be written."""
