from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RewriteOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inline_single_map_contexts: list[str] = Field(default_factory=lambda: ["QueryContainer"])
    inject_field_on_inline: bool = True
    single_map_suffix: str = "SingleMap"
    null_type_name: str = "NullValue"
    field_property: str = "field"
    primitive_value_key: str = "value"
    oneof_schema_flag: str = "x-oneof-schema"
    oneof_property_flag: str = "x-oneof-property"
    oneof_annotation_flag: str | None = "x-oneof-annotation"

    @model_validator(mode="after")
    def _validate_options(self) -> "RewriteOptions":
        for name in ("single_map_suffix", "null_type_name", "field_property", "primitive_value_key"):
            if not getattr(self, name).strip():
                raise ValueError(f"rewrite.{name} must not be empty.")
        for name in ("oneof_schema_flag", "oneof_property_flag"):
            if not getattr(self, name).startswith("x-"):
                raise ValueError(f"rewrite.{name} must be a vendor extension starting with 'x-'.")
        if self.oneof_annotation_flag is not None and not self.oneof_annotation_flag.startswith("x-"):
            raise ValueError("rewrite.oneof_annotation_flag must be a vendor extension starting with 'x-'.")
        return self


class Output(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str | None = None
    format: Literal["yaml", "json"] = "yaml"


class Config(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "v1"
    document: str | None = None
    rewrite: RewriteOptions = Field(default_factory=RewriteOptions)
    output: Output = Field(default_factory=Output)

    @model_validator(mode="after")
    def _validate_config(self) -> "Config":
        if self.version != "v1":
            raise ValueError("Only version v1 is supported.")
        return self
