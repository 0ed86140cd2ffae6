from pydantic import BaseModel, ConfigDict


class LinkerBaseModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
    )
