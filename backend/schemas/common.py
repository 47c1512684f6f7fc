"""Shared pydantic base classes."""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelCaseRequest(BaseModel):
    """Request body accepting both ``camelCase`` and ``snake_case`` keys.

    Trigger payloads come from schedulers written in other stacks, which
    send ``maxJobs`` rather than ``max_jobs``.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
