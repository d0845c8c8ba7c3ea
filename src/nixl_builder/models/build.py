"""Step result and component lifecycle models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

StepStatus = Literal["success", "degraded", "fatal"]
ComponentState = Literal["absent", "fetched", "configured", "built", "installed"]


class StepResult(BaseModel):
    """Outcome of one orchestration step."""

    name: str
    status: StepStatus = "success"
    reason: str | None = None  # Set for fatal results
    skipped: bool = False
    warnings: list[str] = Field(default_factory=list)  # Degraded reasons
    updates: dict[str, Any] = Field(default_factory=dict)  # Merged into BuildConfig

    @classmethod
    def ok(
        cls,
        name: str,
        updates: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> "StepResult":
        """Success, or degraded when warnings were collected."""
        warnings = list(warnings or [])
        return cls(
            name=name,
            status="degraded" if warnings else "success",
            warnings=warnings,
            updates=dict(updates or {}),
        )

    @classmethod
    def skip(cls, name: str, reason: str | None = None) -> "StepResult":
        return cls(name=name, skipped=True, reason=reason)

    @classmethod
    def fatal(cls, name: str, reason: str, warnings: list[str] | None = None) -> "StepResult":
        return cls(name=name, status="fatal", reason=reason, warnings=list(warnings or []))

    @property
    def is_fatal(self) -> bool:
        return self.status == "fatal"


class ComponentBuild(BaseModel):
    """Lifecycle state of a component build, tracked as data."""

    name: str
    state: ComponentState = "absent"
    history: list[ComponentState] = Field(default_factory=list)

    def advance(self, state: ComponentState) -> None:
        self.state = state
        self.history.append(state)
