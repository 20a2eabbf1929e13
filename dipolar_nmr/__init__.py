import logging


# Get the root logger for this package
logger = logging.getLogger(__name__)

from dipolar_nmr.commands import coupling, pair, pairlist
from dipolar_nmr.calculator import calculate_dipolar_coupling
from dipolar_nmr.enumerator import EnumerationConfig, EnumerationSummary, enumerate_pairs
from dipolar_nmr.sampler import PairResult, sample_pair
from dipolar_nmr.selection import AtomSelector, InMemorySelector
from dipolar_nmr.trajectory import Trajectory, TrajectorySelection

logger.debug("dipolar_nmr package initialized.")

__version__ = "0.1.0"
