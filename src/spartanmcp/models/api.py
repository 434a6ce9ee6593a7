from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class InputProp(BaseModel):
    """One row of a component's Inputs table."""

    model_config = ConfigDict(frozen=True)

    prop: str
    type: str
    default: str = ""
    description: str = ""


class OutputProp(BaseModel):
    """One row of a component's Outputs table."""

    model_config = ConfigDict(frozen=True)

    prop: str
    type: str
    description: str = ""


class ComponentAPIRecord(BaseModel):
    """API surface of a single Brn*/Hlm* primitive as documented on its page."""

    model_config = ConfigDict(frozen=True)

    name: str
    selector: str = ""
    inputs: list[InputProp] = []
    outputs: list[OutputProp] = []


class CodeExample(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    code: str
    language: str


class ExtractedAPIInfo(BaseModel):
    """Structured API data for one documentation page.

    Serialised with camelCase keys (``brainAPI``/``helmAPI``) to match the
    on-disk cache format; construct with either spelling.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    brain_api: list[ComponentAPIRecord] = Field(default_factory=list, alias="brainAPI")
    helm_api: list[ComponentAPIRecord] = Field(default_factory=list, alias="helmAPI")
    examples: list[CodeExample] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
