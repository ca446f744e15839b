"""Shared pydantic base for every zonecell configuration layer."""

from pydantic import BaseModel, ConfigDict


class ZonecellBaseModel(BaseModel):
    """Strict base: unknown keys are errors, strings are stripped, and
    assignments are re-validated. UserConfig relaxes ``extra`` and
    InternalConfig adds ``frozen``.
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    def masked_dump(self) -> dict:
        """JSON-ready dict with SecretStr fields (the Neo4j password) masked."""
        return self.model_dump(mode="json")
