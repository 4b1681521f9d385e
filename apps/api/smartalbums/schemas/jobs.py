from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from smartalbums.core.enums import JobStatus

class MatchSmartAlbumsJob(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    asset_id: str

class JobResult(BaseModel):
    status: JobStatus
