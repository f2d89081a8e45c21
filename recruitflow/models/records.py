from typing import List

from pydantic import ConfigDict, Field

from .interview import RecordModel, new_id


class JobPosting(RecordModel):
    """Job posting; only the fields used as question-generation context are typed"""

    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=new_id)
    title: str
    department: str = ""
    location: str = ""
    description: str = ""
    experience: str = ""
    status: str = "draft"


class Candidate(RecordModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=new_id)
    name: str
    email: str = ""
    position: str = ""
    skills: List[str] = Field(default_factory=list)
    status: str = "new"
