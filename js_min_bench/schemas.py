from __future__ import annotations

import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class ExperimentConfiguration:
    """Identifies one benchmark run.

    ``input`` overrides the ``<experiment>-<framework>`` identifier; the run
    loop sets it to the input table key.
    """

    experiment: str = "todomvc"
    framework: str = "react"
    tool: str = "raw"
    variant: Optional[str] = None
    input: Optional[str] = None

    @property
    def experiment_identifier(self) -> str:
        if self.input:
            return self.input
        return f"{self.experiment}-{self.framework}"

    @property
    def platform_identifier(self) -> str:
        return f"{self.tool}-{self.variant}" if self.variant else self.tool

    def __str__(self) -> str:
        return f"{self.experiment_identifier}.{self.platform_identifier}"


class Metric(str, Enum):
    BUILD_TIME = "buildTime"
    SIZE = "size"
    GZIP_SIZE = "gzipSize"
    BROTLI_SIZE = "brotliSize"


METRIC_FIELDS = {
    Metric.BUILD_TIME.value: "build_time",
    Metric.SIZE.value: "size",
    Metric.GZIP_SIZE.value: "gzip_size",
    Metric.BROTLI_SIZE.value: "brotli_size",
}


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    numeric_value: Union[int, float] = 0
    numeric_unit: str = ""
    display_value: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("display_value")
    @classmethod
    def default_display_value(cls, value: Optional[str], info: ValidationInfo) -> str:
        if value is None:
            return f"{info.data.get('numeric_value', 0)}{info.data.get('numeric_unit', '')}"
        return value

    @classmethod
    def from_audit(cls, audit: dict) -> "Measurement":
        return cls(
            numeric_value=audit["numericValue"],
            numeric_unit=audit.get("numericUnit", ""),
            display_value=audit.get("displayValue"),
        )


class Observation(BaseModel):
    """Metrics for one result.

    The four guaranteed metrics are typed fields; everything the browser
    audit reports lands in ``audits`` keyed by camelCased audit id.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    build_time: Measurement = Field(default_factory=lambda: Measurement(numeric_unit="ms"))
    size: Optional[Measurement] = None
    gzip_size: Optional[Measurement] = None
    brotli_size: Optional[Measurement] = None
    audits: Optional[Dict[str, Measurement]] = None

    def get(self, column: str) -> Optional[Measurement]:
        field = METRIC_FIELDS.get(column)
        if field:
            return getattr(self, field)
        return (self.audits or {}).get(column)

    def add_audit(self, key: str, measurement: Measurement) -> None:
        if self.audits is None:
            self.audits = {}
        self.audits[key] = measurement


class ExperimentResult(BaseModel):
    input: str
    tool: str
    variant: Optional[str] = None
    failure: Optional[str] = None
    untested: Optional[bool] = None
    data: Observation = Field(default_factory=Observation)


ResultList = TypeAdapter(List[ExperimentResult])


def dump_results(results: List[ExperimentResult]) -> str:
    return ResultList.dump_json(results, indent=2, by_alias=True, exclude_none=True).decode()


def write_results(results: List[ExperimentResult], path: pathlib.Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_results(results) + "\n", encoding="utf-8")


def load_results(path: pathlib.Path) -> List[ExperimentResult]:
    return ResultList.validate_json(path.read_text(encoding="utf-8"))
