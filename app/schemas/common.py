from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Emails are stored and looked up trimmed and lowercased."""
    if value is None:
        return None
    return value.strip().lower()


# Validated address for anything that gets stored
Email = Annotated[EmailStr, AfterValidator(normalize_email)]
# Loose address for lookups; only normalized
LookupEmail = Annotated[str, AfterValidator(normalize_email)]


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = 0

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(BaseModel):
    message: str
