# BlockSim — Fixed-Step Block-Diagram Simulation Framework
# Models exchange named scalar signals over buses and are stepped in lockstep
# by one shared clock.
#
# Usage:
#   from blocksim import SimSystem, StepFunc, SimRecorder, connect_models, ...
#
# Logging:
#   Library modules log under the 'blocksim' namespace. Call
#   blocksim.setup_logging() in scripts to print the messages.

from .errors import *
from .core_signals import *
from .bus import *
from .core_models import *
from .config import *
from .simulation_engine import *
from .subsystem import *
from .source_models import *
from .dynamic_models import *
from .controller_models import *
from .mechanical_models import *
from .sink_models import *
from .logging_config import setup_logging

__version__ = '1.0.0'
__author__ = 'BlockSim Framework'
