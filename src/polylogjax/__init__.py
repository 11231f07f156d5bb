from . import bernoulli
from . import cache
from . import checks
from . import combinatorics
from . import config
from . import context
from . import errors
from . import estimates
from . import polylog
from . import precision
from . import store
from . import zeta

__all__ = [
    "bernoulli",
    "cache",
    "checks",
    "combinatorics",
    "config",
    "context",
    "errors",
    "estimates",
    "polylog",
    "precision",
    "store",
    "zeta",
]
