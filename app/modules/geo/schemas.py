from pydantic import BaseModel
from typing import List


class GeoResultsResponse(BaseModel):
    """Provider result objects are passed through unchanged for the map UI."""
    results: List[dict]
