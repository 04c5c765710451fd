from trampsim.schemas.skill import SkillDefinitionSchema

__all__ = ["SkillDefinitionSchema"]
