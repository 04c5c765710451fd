"""Pydantic schema for skill definition documents."""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from trampsim.models.enums import BedPosition, Position
from trampsim.models.skill import SkillDefinition


# ============== Skill Definition Schema ==============

class SkillDefinitionSchema(BaseModel):
    """One entry of a skill JSON document (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str = Field(min_length=1)
    starting_position: BedPosition = Field(alias="startingPosition")
    ending_position: BedPosition = Field(alias="endingPosition")
    flips: float = Field(ge=0)
    twists: list[float] = Field(default_factory=list)
    position: Position
    possible_positions: list[Position] | None = Field(default=None, alias="possiblePositions")
    is_back_skill: bool = Field(default=False, alias="isBackSkill")

    @field_validator("twists")
    @classmethod
    def validate_twists(cls, v: list[float]) -> list[float]:
        """Twist slots are non-negative turns."""
        for index, twist in enumerate(v):
            if twist < 0:
                raise ValueError(f"twists[{index}] must be >= 0, got {twist}")
        return v

    @field_validator("possible_positions")
    @classmethod
    def validate_possible_positions(cls, v: list[Position] | None) -> list[Position] | None:
        if v is not None and not v:
            raise ValueError("possiblePositions must not be empty when present")
        return v

    @model_validator(mode="after")
    def validate_position_is_possible(self) -> "SkillDefinitionSchema":
        if self.possible_positions is not None and self.position not in self.possible_positions:
            raise ValueError(
                f"position {self.position.value} is not one of "
                f"{[p.value for p in self.possible_positions]}"
            )
        return self

    def to_definition(self) -> SkillDefinition:
        return SkillDefinition(
            name=self.name,
            starting_position=self.starting_position,
            ending_position=self.ending_position,
            flips=self.flips,
            twists=tuple(self.twists),
            position=self.position,
            possible_positions=(
                tuple(self.possible_positions) if self.possible_positions is not None else None
            ),
            is_back_skill=self.is_back_skill,
        )
