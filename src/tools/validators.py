"""Argument models for tool invocations.

Each tool declares its recognized fields; unknown fields are rejected and
optional fields get explicit defaults before any session call.
"""

from typing import Annotated, Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError, field_validator

from core.error_handling import format_validation_error
from core.exceptions import InvalidParametersError
from database.parameters import normalize_parameter_name

# Order matters: bool must be tried before int
ParameterValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]

ArgumentsModel = TypeVar("ArgumentsModel", bound=BaseModel)


class NoArguments(BaseModel):
    """Arguments of tools that take none."""

    model_config = ConfigDict(extra="forbid")


class QueryArguments(BaseModel):
    """Arguments of the query tool."""

    model_config = ConfigDict(extra="forbid")

    sql: str = Field(min_length=1, description="SQL text to execute")
    parameters: Optional[Dict[str, ParameterValue]] = Field(
        default=None,
        description="Named parameters referenced as @name in the SQL text"
    )

    @field_validator("sql")
    @classmethod
    def _sql_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sql must not be empty")
        return value

    @field_validator("parameters")
    @classmethod
    def _parameter_names(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if value:
            for name in value:
                try:
                    normalize_parameter_name(name)
                except InvalidParametersError as e:
                    raise ValueError(e.message)
        return value


class ConnectArguments(BaseModel):
    """Arguments of the connect tool.

    JSON types are checked strictly, so `"false"` or `0` never reaches the
    encrypt flag and `true` is not a port. Defaults and blank checks are
    applied afterwards by ConnectionParameters.
    """

    model_config = ConfigDict(extra="forbid")

    server: StrictStr
    user: StrictStr
    password: StrictStr
    port: Optional[Annotated[StrictInt, Field(ge=1, le=65535)]] = None
    database: Optional[StrictStr] = None
    encrypt: Optional[StrictBool] = None
    trust_server_certificate: Optional[StrictBool] = None

    def connection_fields(self) -> Dict[str, Any]:
        """Fields actually supplied, for ConnectionParameters."""
        return self.model_dump(exclude_none=True)


class ListTablesArguments(BaseModel):
    """Arguments of the list_tables tool."""

    model_config = ConfigDict(extra="forbid")

    schema_name: Optional[str] = Field(default=None, alias="schema", description="Optional schema filter")

    @field_validator("schema_name")
    @classmethod
    def _blank_means_all(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


def parse_arguments(model: Type[ArgumentsModel], arguments: Optional[Dict[str, Any]]) -> ArgumentsModel:
    """Validate a loose argument dict against a tool's model.

    Raises:
        InvalidParametersError: With a one-line description of every problem
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise InvalidParametersError("Invalid arguments: expected an object")
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise InvalidParametersError(f"Invalid arguments: {format_validation_error(e)}")
