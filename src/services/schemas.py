# src/services/schemas.py
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, ValidationError

from src.services.exceptions import PayloadValidationError


def _split_tags(value):
    # 폼에서 "a, b, c" 형태로 들어오는 태그도 받는다
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    return value


Tags = Annotated[List[str], BeforeValidator(_split_tags)]


class _Payload(BaseModel):
    # id, author_id 같은 알 수 없는 필드는 버린다
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)


class BlogCreate(_Payload):
    title: str
    description: str
    category: str = ""
    tags: Tags = Field(default_factory=list)
    image_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("image_url", "imageUrl"))
    published: bool = False


class BlogUpdate(_Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[Tags] = None
    image_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("image_url", "imageUrl"))
    published: Optional[bool] = None


class CommentCreate(_Payload):
    text: str


Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class Credentials(BaseModel):
    # 비밀번호는 앞뒤 공백까지 그대로 비교한다
    model_config = ConfigDict(extra="ignore")

    username: Username
    password: Annotated[str, StringConstraints(min_length=1)]


class UserCreate(Credentials):
    pass


def parse_payload(schema, payload):
    """
    dict 형태의 요청 데이터를 스키마로 검증합니다.

    Raises:
        PayloadValidationError: 필드 타입이 맞지 않거나 필수 필드가 없을 때.
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError("Payload must be an object.")
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise PayloadValidationError("Invalid payload.", errors=errors)
