from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PassingCriteria(_CamelModel):
    min_percentage: float | None = Field(default=None, ge=0, le=100)


class SubjectAssessmentConfigSchema(_CamelModel):
    """Weighting and passing rules attached to a subject."""

    weightage_distribution: dict[str, float] = Field(default_factory=dict)
    passing_criteria: PassingCriteria = Field(default_factory=PassingCriteria)

    @field_validator("weightage_distribution", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v or {}

    @field_validator("weightage_distribution")
    @classmethod
    def _non_negative_weights(cls, v: dict[str, float]) -> dict[str, float]:
        negative = [key for key, weight in v.items() if weight < 0]
        if negative:
            raise ValueError(f"Negative weights for: {', '.join(sorted(negative))}")
        return v

    @field_validator("passing_criteria", mode="before")
    @classmethod
    def _none_as_default(cls, v):
        return v or {}


class GpaBand(_CamelModel):
    min_percentage: float = Field(..., ge=0, le=100)
    grade_points: float = Field(..., ge=0)
    letter: str | None = None


class GpaScale(_CamelModel):
    """Percentage to grade-point mapping. Bands are kept sorted by `min_percentage`."""

    bands: list[GpaBand]

    @model_validator(mode="after")
    def _sorted_and_monotonic(self) -> "GpaScale":
        if not self.bands:
            raise ValueError("GPA scale needs at least one band")
        self.bands.sort(key=lambda band: band.min_percentage)
        for lower, upper in zip(self.bands, self.bands[1:]):
            if upper.min_percentage == lower.min_percentage:
                raise ValueError(f"Duplicate band at {upper.min_percentage}%")
            if upper.grade_points < lower.grade_points:
                raise ValueError(
                    f"Grade points must not decrease with percentage "
                    f"({lower.min_percentage}% -> {lower.grade_points}, "
                    f"{upper.min_percentage}% -> {upper.grade_points})"
                )
        return self
