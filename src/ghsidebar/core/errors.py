class ConfigError(RuntimeError):
    """Configuration validation or loading error."""


class AdapterError(RuntimeError):
    """Raised for adapter initialization failures."""


class AggregationError(RuntimeError):
    """Base class for failures that abort a whole aggregation call."""


class TransportError(AggregationError):
    """The GitHub API call failed at the network, HTTP or GraphQL layer."""


class DeadlineExceededError(TransportError):
    """The caller-supplied deadline elapsed before pagination finished."""


class MalformedNodeError(AggregationError):
    """A search node carried neither a usable issue nor pull request variant."""


class ExhaustionMismatchError(AggregationError):
    """A query that already reported its last page was paged again."""


class PaginationError(AggregationError):
    """The API reported more pages without a usable cursor to continue from."""
