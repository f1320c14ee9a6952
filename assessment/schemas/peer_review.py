from typing import Optional

from pydantic import BaseModel


class PeerReviewRead(BaseModel):
    id: int
    reviewer_id: int
    result_id: int
    reviewee_id: Optional[int] = None

    class Config:
        from_attributes = True
