"""
Pad Finger Assignment Package

Assigns hands and fingers to timed note events on a pad grid and scores
how playable the result is.
"""

__version__ = "1.0.0"

from . import utils
from . import grid
from . import hand
from . import cost
from . import solvers
from . import engine
