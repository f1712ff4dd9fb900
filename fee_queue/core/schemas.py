from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Base for request and response bodies. JSON keys are camelCase (counterId, tokenNumber);
    Python code keeps snake_case names, and snake_case input is also accepted.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
