"""
Emotiva Pipelines.

Business logic orchestration functions.
"""

from emotiva.pipelines.checkin import *
from emotiva.pipelines.sharing import *
from emotiva.pipelines.dashboard import *
