from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class BoostRequest(BaseModel):
    duration_minutes: Optional[float] = None  # default BOOST_DURATION_MINUTES, max MAX_BOOST_DURATION_MINUTES


class BoostResponse(BaseModel):
    boosted_until: datetime
