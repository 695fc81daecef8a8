from pydantic import BaseModel


class ReplaceUserLevelsRequest(BaseModel):
    """Full set of levels the user should hold (empty removes all)"""

    user_level_ids: list[int]


class UserLevelsResponse(BaseModel):
    user_id: int
    user_level_ids: list[int]
