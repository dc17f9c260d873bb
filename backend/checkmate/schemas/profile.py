from pydantic import BaseModel, ConfigDict


class ProfileUpsert(BaseModel):
    instagram_username: str


class ProfileRead(BaseModel):
    user_id: str
    instagram_username: str

    model_config = ConfigDict(from_attributes=True)
