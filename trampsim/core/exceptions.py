class DomainError(Exception):
    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SkillDataError(DomainError):
    """Malformed skill data rejected at the loading boundary."""

    def __init__(self, message: str, source: str | None = None, details: dict | None = None):
        code = "DATA_SKILL_001"
        msg = f"{source}: {message}" if source else message
        super().__init__(code, msg, details or ({"source": source} if source else None))


class SkillContractError(DomainError):
    """A skill definition violates a structural contract (caller error)."""

    def __init__(self, field: str, message: str, details: dict | None = None):
        code = f"CONTRACT_{field.upper()}_001"
        msg = f"Invalid skill {field}: {message}"
        super().__init__(code, msg, details or {"field": field})


class RequirementConfigError(DomainError):
    """A requirement table references an unknown rule kind or bad parameters."""

    def __init__(self, message: str, code: str = "CFG_REQ_001", details: dict | None = None):
        super().__init__(code, message, details)
