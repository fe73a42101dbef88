"""
Emotiva Schemas.

Pydantic models for request validation.
"""

from emotiva.schemas.checkin import *
from emotiva.schemas.children import *
from emotiva.schemas.profile import *
from emotiva.schemas.sharing import *
from emotiva.schemas.school import *
