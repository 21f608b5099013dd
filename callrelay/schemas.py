from typing import List

from pydantic import BaseModel, ConfigDict, Field


class CreateUserRequest(BaseModel):
    username: str = Field(min_length=1)


class CreateGroupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId", min_length=1)
    members: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    time: str
    rooms: int
    connections: int
