"""Typed mission proof payloads.

``mission_logs.proof_data`` is stored as free-form JSON; how it is read depends
on the sibling ``verification_type`` of the mission template. Each type gets
its own model, and ``parse_proof`` tags the raw payload with the type before
validating it against the discriminated union.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from ecoconsole_core.domain.errors import ValidationError
from ecoconsole_core.domain.models import VerificationType


class _ProofBase(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ImageProof(_ProofBase):
    """Photo evidence."""

    type: Literal["IMAGE"] = VerificationType.IMAGE
    image_url: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("image_url", "imageUrl", "url")
    )
    caption: Optional[str] = None


class TextProof(_ProofBase):
    """Free-text review."""

    type: Literal["TEXT_REVIEW"] = VerificationType.TEXT_REVIEW
    text: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("text", "content", "review")
    )


class QuizProof(_ProofBase):
    """Quiz answers."""

    type: Literal["QUIZ"] = VerificationType.QUIZ
    answers: list[Any] = Field(
        ..., validation_alias=AliasChoices("answers", "answer", "selected")
    )
    correct: Optional[bool] = Field(
        None, validation_alias=AliasChoices("correct", "is_correct", "isCorrect")
    )

    @field_validator("answers", mode="before")
    @classmethod
    def wrap_single_answer(cls, v: Any) -> Any:
        if v is None or isinstance(v, list):
            return v
        return [v]


class LocationProof(_ProofBase):
    """Check-in coordinates."""

    type: Literal["LOCATION"] = VerificationType.LOCATION
    latitude: float = Field(
        ..., ge=-90, le=90, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: float = Field(
        ..., ge=-180, le=180, validation_alias=AliasChoices("longitude", "lng", "lon")
    )
    address: Optional[str] = None


MissionProof = Annotated[
    Union[ImageProof, TextProof, QuizProof, LocationProof],
    Field(discriminator="type"),
]

_proof_adapter: TypeAdapter[MissionProof] = TypeAdapter(MissionProof)


def parse_proof(verification_type: str, proof_data: Any) -> Optional[MissionProof]:
    """Interpret raw proof data according to the template's verification type.

    Args:
        verification_type: One of IMAGE, TEXT_REVIEW, QUIZ, LOCATION.
        proof_data: The stored JSON payload (may be None).

    Returns:
        The typed proof, or None when nothing was submitted.

    Raises:
        ValidationError: If the type is unknown or the payload does not fit it.
    """
    if proof_data is None:
        return None

    if isinstance(proof_data, str):
        # Bare strings are the common legacy shape for image and text proof
        if verification_type == VerificationType.IMAGE:
            proof_data = {"image_url": proof_data}
        elif verification_type == VerificationType.TEXT_REVIEW:
            proof_data = {"text": proof_data}
        elif verification_type == VerificationType.QUIZ:
            proof_data = {"answers": [proof_data]}

    if not isinstance(proof_data, dict):
        raise ValidationError(
            f"proof for {verification_type} must be an object, got {type(proof_data).__name__}"
        )

    try:
        return _proof_adapter.validate_python({**proof_data, "type": verification_type})
    except PydanticValidationError as e:
        raise ValidationError(f"invalid {verification_type} proof: {e.errors()[0]['msg']}") from e


def proof_to_dict(proof: Optional[MissionProof]) -> Optional[dict[str, Any]]:
    """Serialize a typed proof for API responses."""
    if proof is None:
        return None
    return proof.model_dump(exclude_none=True)
