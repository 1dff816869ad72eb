"""
Structured input/output schemas for the three AI capabilities.

Upstream responses are validated strictly; anything that does not match
the schema is rejected as an UpstreamCallError rather than trusted.
"""
import re
from typing import List, Type, TypeVar, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import UpstreamCallError

DATA_URI_PATTERN = re.compile(r"^data:[\w.+-]+/[\w.+-]+(;[\w.+-]+=[\w.+-]+)*;base64,[A-Za-z0-9+/=\s]*$")

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value.strip()


class InterviewExchangeInput(BaseModel):
    """A previous question/answer pair given to the question generator."""
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class GenerateQuestionInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    difficulty: str
    previous_exchanges: List[InterviewExchangeInput] = Field(default_factory=list)


class GenerateQuestionOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: str

    @field_validator("question")
    @classmethod
    def strip_question(cls, value: str) -> str:
        return _non_blank(value)


class TranscribeAnswerInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    audio_data_uri: str

    @field_validator("audio_data_uri")
    @classmethod
    def check_data_uri(cls, value: str) -> str:
        if not DATA_URI_PATTERN.match(value):
            raise ValueError("expected 'data:<mimetype>;base64,<encoded_data>'")
        return value

    @property
    def mime_type(self) -> str:
        return self.audio_data_uri[len("data:"):].split(";", 1)[0]

    @property
    def base64_data(self) -> str:
        return self.audio_data_uri.split(";base64,", 1)[1]


class TranscribeAnswerOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Silence legitimately transcribes to an empty string
    transcription: str

    @field_validator("transcription")
    @classmethod
    def strip_transcription(cls, value: str) -> str:
        return value.strip()


class AnalyzeAnswerQualityInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str

    @field_validator("question", "answer")
    @classmethod
    def strip_fields(cls, value: str) -> str:
        return _non_blank(value)


class AnalyzeAnswerQualityOutput(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    clarity: str
    conciseness: str
    overall_quality: str = Field(alias="overallQuality")
    suggestions: str

    @field_validator("clarity", "conciseness", "overall_quality", "suggestions")
    @classmethod
    def strip_fields(cls, value: str) -> str:
        return _non_blank(value)


def validate_payload(schema: Type[SchemaT], payload: Any, capability: str) -> SchemaT:
    """
    Validate a payload against a schema.

    Raises:
        UpstreamCallError: If the payload does not match; partial results are never returned
    """
    try:
        if isinstance(payload, schema):
            return payload
        if not isinstance(payload, dict):
            raise UpstreamCallError(
                f"Expected a JSON object for {schema.__name__}, got {type(payload).__name__}",
                capability=capability,
            )
        return schema.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise UpstreamCallError(
            f"{schema.__name__} validation failed",
            capability=capability,
            context={"fields": fields},
        ) from e


def build_input(schema: Type[SchemaT], capability: str, **values: Any) -> SchemaT:
    """Build and validate a capability input, reporting failures as UpstreamCallError."""
    return validate_payload(schema, dict(values), capability)


